from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional




class MemoryBlobStore:
    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.saves: List[str] = []

    def load(self, key):
        return self.blobs.get(key)

    def save(self, key, blob):
        self.blobs[key] = bytes(blob)
        self.saves.append(key)

    def clear(self):
        self.blobs.clear()


class FakeExtractor:
    """Returns canned candidates keyed by the text handed over by the fake reader."""

    def __init__(self, responses: Dict[str, object]):
        self.responses = responses
        self.calls: List[tuple] = []

    def extract(self, text, category=None):
        self.calls.append((text, category))
        response = self.responses[text]
        if isinstance(response, Exception):
            raise response
        return response


def fake_reader(path, logger):
    return Path(path).name


def make_candidate(airport: str, month: str, year: int, pax: float = 1000.0, cargo: float = 10.0,
                   atm: float = 50.0, growth: Optional[float] = None) -> dict:
    return {
        'airportName': airport,
        'month': month,
        'year': year,
        'timePeriod': f'{month} {year}',
        'passengers': {'domestic': pax * 0.6, 'international': pax * 0.4, 'total': pax, 'growthPercentage': growth},
        'cargo': {
            'domestic': {'inbound': 1.0, 'outbound': 2.0, 'total': 3.0},
            'international': {'inbound': 4.0, 'outbound': 5.0, 'total': 9.0},
            'total': cargo,
        },
        'atms': {
            'domestic': {'pax': 10.0, 'cargo': 1.0, 'total': 11.0},
            'international': {'pax': 20.0, 'cargo': 2.0, 'total': 22.0},
            'total': atm,
        },
    }
