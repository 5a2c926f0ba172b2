"""Customer domain models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CustomerRegistration:
    """Input model for registering the calling identity as a customer."""

    name: str
    national_id: str
    nationality: str
    phone: str
    birth_year: int
    married: bool


@dataclass
class CustomerView:
    """Output model for customer retrieval."""

    identity: str
    name: str
    national_id: str
    nationality: str
    phone: str
    birth_year: int
    married: bool
    banned: bool
