"""
promo_engine/bulk_io.py
-----------------------
Bulk promotional-price import / export (CSV).

Import format
-------------
Comma-separated, header row first. Columns are located case-insensitively:
    SKU column   : first header containing "sku"
    Price column : first header containing "promo", else first containing "price"
Any other columns are ignored. Rows with a blank SKU or a missing,
non-numeric or negative price are dropped (counted in `skipped`).

SKU resolution
--------------
An imported token may be a canonical SKU or a platform alias
(channels[].sku_alias, itself a comma-separated list). Resolution is
case-insensitive:
    1. canonical SKU
    2. any channel alias
    3. a SKU already in the event
    4. the literal token as written

Applying an import upserts: a SKU already in the event is updated in place,
never duplicated, so importing the same file twice is idempotent. An item
whose promo price is unchanged is left exactly as it was.

Export
------
export_items_csv() writes SKU, Name, Base Price, Promo Price, Discount Type,
Discount Value. Its "Promo Price" column is picked up by the importer, and
re-importing an unedited export leaves the event unchanged. Edited prices
are recorded as FIXED discounts (base − promo).
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import IO, Iterable

import pandas as pd

from promo_engine.builder import upsert_items
from promo_engine.models import Product, PromotionEvent, PromotionItem
from promo_engine.pricing import parse_override, resolve_base_price

logger = logging.getLogger(__name__)

EXPORT_COLUMNS: list[str] = [
    "SKU", "Name", "Base Price", "Promo Price", "Discount Type", "Discount Value",
]


# ─────────────────────────────────────────────────────────────────────────────
# Data containers
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImportRow:
    row_number: int      # 1-based data row (header excluded)
    token:      str      # SKU as written in the file
    price:      float


@dataclass
class PriceImport:
    rows:         list[ImportRow]
    skipped:      int
    sku_column:   str
    price_column: str


@dataclass
class ImportOutcome:
    event:      PromotionEvent
    updated:    list[str] = field(default_factory=list)
    added:      list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)   # literal tokens kept as-is


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def _find_column(columns: Iterable[str], *needles: str) -> str | None:
    """First column whose lower-cased name contains a needle, needles tried in order."""
    columns = list(columns)
    for needle in needles:
        for col in columns:
            if needle in str(col).lower():
                return col
    return None


def _read_frame(source: str | bytes | IO) -> pd.DataFrame:
    if isinstance(source, bytes):
        source = source.decode("utf-8-sig")
    if isinstance(source, str):
        source = io.StringIO(source.lstrip("\ufeff"))
    try:
        return pd.read_csv(source, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError as exc:
        raise ValueError("Import file is empty") from exc


def parse_price_import(source: str | bytes | IO) -> PriceImport:
    """
    Parse a promo-price CSV.

    Raises:
        ValueError: file is empty, or has no SKU / price column.
    """
    df = _read_frame(source)

    sku_col   = _find_column(df.columns, "sku")
    price_col = _find_column([c for c in df.columns if c != sku_col], "promo", "price")
    if sku_col is None or price_col is None:
        raise ValueError(
            f"Import file needs a SKU column and a price/promo column; found {list(df.columns)}"
        )

    rows: list[ImportRow] = []
    skipped = 0
    for idx, (raw_sku, raw_price) in enumerate(zip(df[sku_col], df[price_col]), start=1):
        token = str(raw_sku).strip()
        price = parse_override(raw_price)
        if not token or price is None:
            skipped += 1
            continue
        rows.append(ImportRow(row_number=idx, token=token, price=price))

    return PriceImport(rows=rows, skipped=skipped, sku_column=sku_col, price_column=price_col)


# ─────────────────────────────────────────────────────────────────────────────
# SKU resolution
# ─────────────────────────────────────────────────────────────────────────────

def build_sku_index(products: Iterable[Product]) -> dict[str, str]:
    """
    Lower-cased token → canonical SKU.

    Canonical SKUs take precedence over aliases that collide with them.
    """
    products = list(products)
    index: dict[str, str] = {}
    for p in products:
        for channel in p.channels:
            for alias in channel.aliases():
                index.setdefault(alias.lower(), p.sku)
    for p in products:
        index[p.sku.lower()] = p.sku
    return index


def resolve_import_sku(token: str, products: Iterable[Product] | dict[str, str]) -> str:
    """Canonical SKU for token, or the stripped token itself when unknown."""
    index = products if isinstance(products, dict) else build_sku_index(products)
    token = str(token).strip()
    return index.get(token.lower(), token)


# ─────────────────────────────────────────────────────────────────────────────
# Apply / export
# ─────────────────────────────────────────────────────────────────────────────

def apply_price_import(
    event:    PromotionEvent,
    rows:     Iterable[ImportRow],
    products: Iterable[Product],
) -> ImportOutcome:
    """
    Upsert imported prices into the event.

    Existing item : keeps its base price; promo price replaced; discount
                    recorded as FIXED (base − promo). Left untouched when
                    the promo price is unchanged.
    New item      : base price from the base-price resolver for the event
                    platform, or the imported price when the SKU is unknown.
    """
    products = list(products)
    by_sku = {p.sku: p for p in products}

    # Event SKUs resolve case-insensitively too; catalog entries win
    index = {i.sku.lower(): i.sku for i in event.items}
    index.update(build_sku_index(products))

    outcome = ImportOutcome(event=event)
    incoming: list[PromotionItem] = []

    for row in rows:
        sku = resolve_import_sku(row.token, index)
        existing = event.item_for(sku)
        first_seen = sku not in outcome.updated and sku not in outcome.added

        if existing is not None:
            base = existing.base_price
            if first_seen:
                outcome.updated.append(sku)
            if round(existing.promo_price, 2) == round(row.price, 2):
                incoming.append(existing)
                continue
        else:
            product = by_sku.get(sku)
            if product is not None:
                base = resolve_base_price(product, event.platform).price
            else:
                base = row.price
                index.setdefault(sku.lower(), sku)
                if first_seen:
                    outcome.unresolved.append(sku)
            if first_seen:
                outcome.added.append(sku)

        incoming.append(PromotionItem(
            sku            = sku,
            base_price     = base,
            promo_price    = row.price,
            discount_type  = "FIXED",
            discount_value = round(max(0.0, base - row.price), 2),
        ))

    outcome.event = upsert_items(event, incoming)
    logger.info(
        f"Imported {len(incoming)} price(s) into event {event.id!r}: "
        f"{len(outcome.updated)} updated, {len(outcome.added)} added, "
        f"{len(outcome.unresolved)} unresolved SKU(s)"
    )
    return outcome


def import_prices(
    event:    PromotionEvent,
    source:   str | bytes | IO,
    products: Iterable[Product],
) -> ImportOutcome:
    """parse_price_import() + apply_price_import() in one call."""
    parsed = parse_price_import(source)
    if parsed.skipped:
        logger.info(f"Skipped {parsed.skipped} import row(s) with a blank SKU or unusable price")
    return apply_price_import(event, parsed.rows, products)


def export_items_csv(event: PromotionEvent, products: Iterable[Product] = ()) -> str:
    """CSV text of the event's items, in event order."""
    names = {p.sku: p.name for p in products}
    df = pd.DataFrame(
        [
            {
                "SKU":            i.sku,
                "Name":           names.get(i.sku, ""),
                "Base Price":     i.base_price,
                "Promo Price":    i.promo_price,
                "Discount Type":  i.discount_type,
                "Discount Value": i.discount_value,
            }
            for i in event.items
        ],
        columns=EXPORT_COLUMNS,
    )
    return df.to_csv(index=False, float_format="%.2f")
