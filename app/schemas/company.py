from __future__ import annotations

from pydantic import BaseModel, Field


class CompanyEntry(BaseModel):
    company_name: str
    symbol: str


class CompanyDirectory(BaseModel):
    """Snapshot of company name -> ticker symbol, in upstream order."""

    companies: dict[str, str] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.companies)

    def symbol_for(self, company_name: str) -> str | None:
        return self.companies.get(company_name)

    def entries(self) -> list[CompanyEntry]:
        return [CompanyEntry(company_name=name, symbol=symbol) for name, symbol in self.companies.items()]
