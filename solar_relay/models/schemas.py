from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    # The provider calls this the "system code".
    password: str


class LoginResponse(BaseModel):
    success: Literal[True] = True
    token: str
