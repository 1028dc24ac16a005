"""Charity catalog - verified charities available for balance donations.

The ``support-wishbee`` entry is the platform itself. It has no EIN (tips are
not tax-deductible) and is routed to the tip path, never to donation
processing, so it is excluded from ``DONATION_CHARITIES``.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SUPPORT_WISHBEE_ID = "support-wishbee"


class Charity(BaseModel):
    """A charity option shown in the donation panel."""

    id: str = Field(description="Catalog identifier")
    name: str = Field(description="Display name")
    ein: Optional[str] = Field(default=None, description="US tax id, None for the platform")
    website: str = Field(description="Charity website")
    description: str = Field(default="", description="One-line cause description")
    icon: Optional[Literal["heart", "globe", "leaf", "cross"]] = None
    logo: Optional[str] = None


CHARITY_DATA: List[Charity] = [
    Charity(id="feeding-america", name="Feeding America", ein="36-3673599",
            website="https://www.feedingamerica.org",
            description="Help provide meals to families in need", icon="heart",
            logo="/images/charity-logos/FeedingAmerica.png"),
    Charity(id="red-cross", name="American Red Cross", ein="53-0196605",
            website="https://www.redcross.org",
            description="Provide disaster relief & emergency assistance", icon="cross",
            logo="/images/charity-logos/American%20Red%20Cross.jpg"),
    Charity(id="st-jude", name="St. Jude Children's Research Hospital", ein="62-0646012",
            website="https://www.stjude.org",
            description="Treat childhood cancer and life-threatening diseases", icon="heart"),
    Charity(id="wwf", name="World Wildlife Fund", ein="52-1693387",
            website="https://www.worldwildlife.org",
            description="Protect wildlife and their habitats globally", icon="leaf"),
    Charity(id="habitat-for-humanity", name="Habitat for Humanity", ein="91-1914868",
            website="https://www.habitat.org",
            description="Build affordable housing for families in need", icon="heart"),
    Charity(id="unicef", name="UNICEF", ein="13-1623829",
            website="https://www.unicef.org",
            description="Support children's health & education globally", icon="globe",
            logo="/images/charity-logos/Unicef.png"),
    Charity(id="edf", name="Environmental Defense Fund", ein="11-6107399",
            website="https://www.edf.org",
            description="Protect the planet & stabilize the climate", icon="leaf",
            logo="/images/charity-logos/Environmental%20Defense%20Fund.png"),
    Charity(id=SUPPORT_WISHBEE_ID, name="Wishbee", ein=None,
            website="https://wishbee.ai",
            description="Platform tip - not tax-deductible"),
]

DONATION_CHARITIES: List[Charity] = [c for c in CHARITY_DATA if c.id != SUPPORT_WISHBEE_ID]


def get_charity_by_id(charity_id: str) -> Optional[Charity]:
    """Look up any catalog entry, including the platform entry."""
    return next((c for c in CHARITY_DATA if c.id == charity_id), None)


def get_donation_charity(charity_id: Optional[str]) -> Optional[Charity]:
    """Look up a charity eligible for donation processing."""
    if not charity_id:
        return None
    return next((c for c in DONATION_CHARITIES if c.id == charity_id), None)


def get_charity_ein(charity_id: str) -> Optional[str]:
    charity = get_charity_by_id(charity_id)
    return charity.ein if charity else None
