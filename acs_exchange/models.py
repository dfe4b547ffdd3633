"""Request and response bodies of the identity endpoints.

Field names match the JSON contract the Teams tab front end already consumes.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class AcsTokenResponse(BaseModel):
    """Response model for the exchange endpoint"""
    newUserToken: Optional[str] = Field(None, description="ACS access token (chat, voip) for the new identity")
    newUserId: Optional[str] = Field(None, description="ACS identity id, 8:acs:...")
    cToken: Optional[str] = Field(None, description="ACS token bound to the caller's Teams identity")


class RefreshTokenRequest(BaseModel):
    """Request model for the refresh endpoint"""
    AcsUserId: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("AcsUserId", "acsUserId"),
        description="Existing ACS identity id",
    )


class AcsTokenRefreshResponse(BaseModel):
    """Response model for the refresh endpoint"""
    Token: str
    ExpiresOn: datetime


class ErrorResponse(BaseModel):
    error: str
    code: str
