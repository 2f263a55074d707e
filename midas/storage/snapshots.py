"""JSON snapshots of the Reseller's inventories, used to resume after a restart."""

import json
from pathlib import Path
from typing import Dict, List, Tuple

from loguru import logger

from ..core.reseller import Entry, Reseller, Storage
from ..core.types import CoinPair


def _dump_storage(storage: Storage) -> Dict[str, List[Dict[str, float]]]:
    return {
        coins.symbol: [{"price": entry.price, "amount": entry.amount} for entry in entries]
        for coins, entries in storage.items()
        if entries
    }


def _load_storage(data: Dict[str, List[Dict[str, float]]]) -> Storage:
    return {
        CoinPair.from_symbol(symbol): [Entry(float(item["price"]), float(item["amount"])) for item in entries]
        for symbol, entries in data.items()
    }


class ResellerSnapshot:
    """Persists ``[buy_storage, sell_storage]`` to a JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def save(self, reseller: Reseller) -> None:
        payload = [_dump_storage(reseller.buy_storage), _dump_storage(reseller.sell_storage)]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2))
        tmp_path.replace(self.path)
        logger.debug(f"Saved reseller snapshot to {self.path}")

    def load(self) -> Tuple[Storage, Storage]:
        """Return ``(buy_storage, sell_storage)``; empty when nothing was saved."""
        if not self.path.exists():
            return {}, {}
        text = self.path.read_text().strip()
        if not text:
            return {}, {}
        buy, sell = json.loads(text)
        logger.info(f"Loaded reseller snapshot from {self.path}")
        return _load_storage(buy), _load_storage(sell)
