"""Partner XML feed parser.

Turns raw feed bytes into FeedEntry records. Parsing is tolerant: a broken
product or region is reported as an error string and skipped, so one bad block
never costs the rest of the feed.

Expected layout::

    <products>
      <product>
        <id>SKU</id>
        <title>...</title>
        <regions>
          <region>
            <code>RU-MOW</code>
            <stocks>
              <stock>
                <stock_id/><city/><address/><available/><active/><pickup/><price/>
              </stock>
            </stocks>
          </region>
        </regions>
      </product>
    </products>
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from lxml import etree

from partner_import.models.config import DEFAULT_REGION_GROUPS
from partner_import.models.data_models import FeedEntry, ParseResult, RawStockRow, RegionStock


PRODUCT_PATH = "/products/product"


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def _text(element: etree._Element, path: str) -> str:
    """Stripped text of the first child at ``path``, or empty string."""
    value = element.findtext(path)
    return value.strip() if value else ""


def parse_price(value: Optional[str]) -> float:
    """
    Parse a feed price.

    Comma decimal separators are accepted ("199,90" -> 199.9). Anything that
    is not a finite number ("abc", "NaN", "inf") yields 0.0, which row
    validation later rejects.
    """
    if value is None:
        return 0.0
    try:
        price = float(str(value).strip().replace(",", "."))
    except ValueError:
        return 0.0
    return price if math.isfinite(price) else 0.0


def _parse_flag(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _parse_available(value: str) -> Union[int, str]:
    """
    Integer availability, or the raw text when it is not a number.

    Decimal text such as "5.0" or "5,0" is truncated to an integer.
    """
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value.replace(",", "."))
    except ValueError:
        return value
    return int(number) if math.isfinite(number) else value


class RegionMerger:
    """Maps a feed region code to the canonical codes it stands for."""

    def __init__(self, groups: Optional[Sequence[Sequence[str]]] = None):
        self._groups: Dict[str, Tuple[str, ...]] = {}
        for group in (DEFAULT_REGION_GROUPS if groups is None else groups):
            canonical = tuple(group)
            for code in canonical:
                self._groups[code] = canonical

    def expand(self, code: str) -> Tuple[str, ...]:
        return self._groups.get(code, (code,))


def _parse_stock(stock: etree._Element) -> RawStockRow:
    return RawStockRow(
        stock_id=_text(stock, "stock_id"),
        city=_text(stock, "city"),
        address=_text(stock, "address"),
        price=parse_price(stock.findtext("price")),
        available=_parse_available(_text(stock, "available")),
        active=_parse_flag(_text(stock, "active")),
        pickup=_parse_flag(_text(stock, "pickup")),
    )


def _parse_regions(
    sku: str,
    regions: Iterable[etree._Element],
    merger: RegionMerger,
    errors: List[str]
) -> List[RegionStock]:
    result = []
    for region in regions:
        code = _text(region, "code")
        if not code:
            errors.append(f"{sku} | Region code not found: missing required parameter code")
            continue
        rows = [_parse_stock(stock) for stock in region.iterfind("stocks/stock")]
        result.append(RegionStock(region_codes=merger.expand(code), rows=rows))
    return result


def parse_feed(
    data: bytes,
    region_groups: Optional[Sequence[Sequence[str]]] = None
) -> ParseResult:
    """
    Parse partner feed bytes.

    Args:
        data: Raw feed body as downloaded
        region_groups: Region codes that form one logical region; defaults
            to Moscow and Saint Petersburg city/oblast pairs

    Returns:
        ParseResult with one FeedEntry per product id and the parse errors.
        Empty, malformed or product-less input gives no entries and one error.
    """
    result = ParseResult()
    if not data:
        result.errors.append("Could not fetch feed XML.")
        return result

    try:
        root = etree.fromstring(data, parser=_make_parser())
    except etree.XMLSyntaxError as e:
        result.errors.append(f"Feed XML is malformed: {e}")
        return result

    products = root.xpath(PRODUCT_PATH)
    if not products:
        result.errors.append("Feed XML is malformed")
        return result

    merger = RegionMerger(region_groups)
    entries: Dict[str, FeedEntry] = {}

    for product in products:
        sku = _text(product, "id")
        if not sku:
            result.errors.append("SKU not found: missing required parameter id")
            continue
        # Repeated ids: the last block wins
        entries[sku] = FeedEntry(
            sku=sku,
            title=_text(product, "title"),
            regions=_parse_regions(sku, product.iterfind("regions/region"), merger, result.errors),
        )

    result.entries = list(entries.values())
    return result
