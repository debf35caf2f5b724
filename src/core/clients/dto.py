from dataclasses import dataclass


@dataclass
class Security:
    ticker: str
    company_name: str | None = None


@dataclass
class Account:
    id: int
    display_name: str | None = None
