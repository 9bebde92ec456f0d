"""Raw source schemas"""

from pydantic import BaseModel


class FeedEntry(BaseModel):
    """One <item> of a monthly transaction feed, as published."""

    title: str = ""
    pub_date: str = ""
    description: str = ""
