"""Two-minute eventrag demo: FastAPI backend over a synthetic in-memory event corpus."""

import hashlib
import re
from dataclasses import asdict
from datetime import date, timedelta
from random import Random
from typing import List, Optional

from fastapi import FastAPI

from eventrag.adapters.memory import InMemoryEventStore, InMemoryQueryLog
from eventrag.classifier import classify_query
from eventrag.config import configure_logging, get_settings
from eventrag.functions import FunctionExecutor
from eventrag.models import EventRecord, RouterPreferences
from eventrag.router import ModelRouter
from eventrag.service import RetrievalService

RNG = Random(42)
DIMENSIONS = 64

BRANDS = ["Nike", "Adidas", "Apple", "Samsung", "Zara", "Gucci"]
PRODUCTS = ["running shoes", "hoodie", "phone case", "headphones", "lipstick", "mascara"]
SEARCH_TERMS = ["mascara", "red dress", "wireless earbuds", "yoga mat", "sneakers"]
CATEGORIES = ["beauty", "fashion", "electronics", "sports"]
EMAILS = [f"customer{idx}@example.com" for idx in range(12)]

configure_logging()
app = FastAPI(title="eventrag Two-Minute Demo", version="0.1.0")


class HashingEmbedder:
    """Bag-of-words hashing embedder so the demo needs no model server."""

    def embed(self, text: str) -> List[float]:
        vector = [0.0] * DIMENSIONS
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vector[digest[0] % DIMENSIONS] += 1.0
        return vector


def _event_text(metadata: dict) -> str:
    return " ".join(str(value) for value in metadata.values() if not isinstance(value, list))


def _build_demo_records(embedder: HashingEmbedder) -> List[EventRecord]:
    today = date.today()

    records = []
    for idx in range(300):
        event_date = today - timedelta(days=idx % 30)
        email = EMAILS[idx % len(EMAILS)]
        event_type = ("purchase", "search", "pageview")[idx % 3]
        metadata = {
            "eventType": event_type,
            "date": event_date.isoformat(),
            "email": email,
            "country": RNG.choice(["US", "DE", "FR", "GB"]),
        }
        if event_type == "purchase":
            brand = RNG.choice(BRANDS)
            metadata.update(
                {
                    "productName": f"{brand} {RNG.choice(PRODUCTS)}",
                    "sku": f"SKU-{idx:05d}",
                    "price": round(RNG.uniform(5, 950), 2),
                    "quantity": RNG.randint(1, 4),
                    "brands": [brand],
                    "orderNumber": f"ORD-{1000 + idx}",
                }
            )
        elif event_type == "search":
            term = RNG.choice(SEARCH_TERMS)
            metadata.update({"searchTerm": term, "url": f"/search?q={term.replace(' ', '+')}"})
        else:
            category = RNG.choice(CATEGORIES)
            metadata.update({"category": category, "subCategory": "featured", "url": f"/c/{category}"})

        records.append(
            EventRecord(
                id=str(idx),
                vector=embedder.embed(_event_text(metadata)),
                metadata=metadata,
                event_date=event_date,
                event_type=event_type,
                email=email,
            )
        )
    return records


EMBEDDER = HashingEmbedder()
STORE = InMemoryEventStore(_build_demo_records(EMBEDDER))
QUERY_LOG = InMemoryQueryLog()
SERVICE = RetrievalService.from_settings(
    get_settings(), STORE, EMBEDDER, query_log=QUERY_LOG, log_repository=QUERY_LOG
)
ROUTER = ModelRouter()
FUNCTIONS = FunctionExecutor(
    SERVICE,
    files=[{"id": "demo", "name": "demo_events.csv", "uploaded_at": date.today().isoformat(), "rows": 300}],
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "demo": "eventrag-two-minute", "records": len(STORE.records)}


@app.get("/api/search")
def search(q: str, top_k: Optional[int] = None) -> dict:
    answer = SERVICE.answer(q, top_k=top_k)
    return asdict(answer)


@app.get("/api/classify")
def classify(q: str) -> dict:
    return asdict(classify_query(q))


@app.get("/api/model-selector")
def model_selector(
    q: str,
    prioritize_cost: bool = False,
    prioritize_speed: bool = False,
    prioritize_quality: bool = False,
    max_cost_per_1m: Optional[float] = None,
) -> dict:
    preferences = RouterPreferences(
        prioritize_cost=prioritize_cost,
        prioritize_speed=prioritize_speed,
        prioritize_quality=prioritize_quality,
        max_cost_per_1m=max_cost_per_1m,
    )
    return asdict(ROUTER.select_model(q, preferences))


@app.get("/api/stats")
def stats(metric: Optional[str] = None) -> dict:
    if metric:
        return SERVICE.get_statistic(metric)
    return {
        "corpus": {
            name: SERVICE.get_statistic(name)
            for name in ("total_records", "event_types", "unique_emails", "date_range")
        },
        "queries": SERVICE.get_query_metrics(),
    }


@app.post("/api/functions")
def functions(payload: dict) -> dict:
    return asdict(FUNCTIONS.execute(payload.get("name", ""), payload.get("parameters") or {}))
