from pydantic import BaseModel


class Quote(BaseModel):
    company_name: str
    symbol: str
    price: float
    change: float
    change_percent: float
    currency: str
