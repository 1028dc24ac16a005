"""Sandbox HTTP API for giftsettle."""
