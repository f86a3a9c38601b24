"""
Wire models for FinnHub API responses.

Field names are accepted in both camelCase and snake_case; every field is
optional because the provider omits them freely.
"""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..domain.entities import DomainSymbol


class ProviderSymbol(BaseModel):
    """One entry of the ``result`` array returned by ``/search``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    symbol: Optional[str] = None
    description: Optional[str] = None
    display_symbol: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("displaySymbol", "display_symbol"),
    )
    type: Optional[str] = None


class ProviderSearchResponse(BaseModel):
    """Body of a successful ``/search`` response."""

    model_config = ConfigDict(extra="ignore")

    count: Optional[int] = None
    result: Optional[List[ProviderSymbol]] = None


def to_domain_symbol(provider_symbol: ProviderSymbol) -> DomainSymbol:
    """
    Map a provider symbol to its null-free domain form.

    Missing fields become empty strings and ``display_symbol`` falls back
    to ``symbol``.
    """
    return DomainSymbol(
        symbol=provider_symbol.symbol or "",
        description=provider_symbol.description or "",
        display_symbol=provider_symbol.display_symbol or provider_symbol.symbol or "",
        type=provider_symbol.type or "",
    )
