"""User profile model."""

from pydantic import Field

from finance_tracker.models.finance import FinanceRecord


class Profile(FinanceRecord):
    """Profile fields shown on the home and settings screens."""

    full_name: str = Field(default="Rashid Riyad")
    email: str = Field(default="Rashid.dev@example.com")
    phone: str = Field(default="+1 123 456 7890")
    profile_image: str = Field(
        default="https://placeimg.com/140/140/people",
        description="URL of the profile picture"
    )
