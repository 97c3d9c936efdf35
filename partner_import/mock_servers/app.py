"""FastAPI mock partner feed server for local runs and integration tests."""

import os
import random
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from fastapi import FastAPI, HTTPException, Response


def build_sample_feed(products: Iterable[Dict]) -> bytes:
    """
    Render a partner feed document.

    Args:
        products: Dicts with ``id``, ``title`` and ``regions``; each region is
            a dict with ``code`` and ``stocks``, each stock a dict of the
            stock fields (stock_id, city, address, available, active,
            pickup, price). Values are written as given.

    Returns:
        UTF-8 encoded XML with declaration
    """
    lines: List[str] = ['<?xml version="1.0" encoding="UTF-8"?>', "<products>"]
    for product in products:
        lines.append("  <product>")
        lines.append(f"    <id>{escape(str(product['id']))}</id>")
        lines.append(f"    <title>{escape(str(product.get('title', '')))}</title>")
        lines.append("    <regions>")
        for region in product.get("regions", []):
            lines.append("      <region>")
            lines.append(f"        <code>{escape(str(region['code']))}</code>")
            lines.append("        <stocks>")
            for stock in region.get("stocks", []):
                lines.append("          <stock>")
                for name, value in stock.items():
                    lines.append(f"            <{name}>{escape(str(value))}</{name}>")
                lines.append("          </stock>")
            lines.append("        </stocks>")
            lines.append("      </region>")
        lines.append("    </regions>")
        lines.append("  </product>")
    lines.append("</products>")
    return ("\n".join(lines) + "\n").encode("utf-8")


def create_feed_app(
    feeds: Dict[str, bytes],
    error_rate: float = 0.0,
    random_seed: Optional[int] = None,
    error_codes: Sequence[int] = (502, 503)
) -> FastAPI:
    """
    Create a FastAPI server that serves partner feeds.

    Args:
        feeds: Feed body per partner id, served at /feeds/{partner_id}.xml
        error_rate: Probability of returning a retryable 5xx error (0.0-1.0)
        random_seed: Seed for deterministic error injection
        error_codes: Status codes used for injected errors

    Returns:
        FastAPI application
    """
    app = FastAPI(title="Mock Partner Feeds")
    rng = random.Random(random_seed)

    @app.get("/feeds/{partner_id}.xml")
    async def get_feed(partner_id: str):
        """Serve the feed of one partner."""
        if error_rate > 0 and rng.random() < error_rate:
            raise HTTPException(status_code=rng.choice(list(error_codes)), detail="Simulated error")

        if partner_id not in feeds:
            raise HTTPException(status_code=404, detail=f"Unknown partner {partner_id}")

        return Response(content=feeds[partner_id], media_type="application/xml")

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "feeds": sorted(feeds)}

    return app


def load_feeds(directory: Path) -> Dict[str, bytes]:
    """Read every ``<partner_id>.xml`` file of ``directory``."""
    if not directory.is_dir():
        return {}
    return {path.stem: path.read_bytes() for path in sorted(directory.glob("*.xml"))}


def create_app() -> FastAPI:
    """
    Factory function for uvicorn --factory.

    Serves the XML files of FEED_DIR (default ``feeds``). ERROR_RATE and
    RANDOM_SEED control error injection.
    """
    seed = os.getenv("RANDOM_SEED")
    return create_feed_app(
        load_feeds(Path(os.getenv("FEED_DIR", "feeds"))),
        error_rate=float(os.getenv("ERROR_RATE", 0.0)),
        random_seed=int(seed) if seed is not None else None,
    )
