"""
Stockroom — User Directory Schemas
====================================

What:  The projection of a directory user returned by GET /users/{id}.
Why:   The upstream record carries address, company, phone, etc.; we expose
       only name and email (extra upstream fields are ignored).
"""

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    name: str = Field(description="Full name")
    email: str = Field(description="Contact email address")

    model_config = {"extra": "ignore"}
