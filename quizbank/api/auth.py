from fastapi import APIRouter
from pydantic import BaseModel, field_validator
from typing import List
from quizbank.core.auth import create_token, PARTICIPANT, ROLES

router = APIRouter()


class MockLogin(BaseModel):
    user_id: str
    roles: List[str] = [PARTICIPANT]

    @field_validator("roles")
    @classmethod
    def known_roles(cls, v: List[str]) -> List[str]:
        unknown = set(v) - ROLES
        if unknown:
            raise ValueError(f"unknown roles: {sorted(unknown)}")
        return v


@router.post("/mock-login")
def mock_login(payload: MockLogin):
    """Development token issuer; real deployments get tokens from the identity service."""
    token = create_token(payload.user_id, payload.roles)
    return {"access_token": token, "token_type": "bearer", "roles": payload.roles}
