import json
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Dict, List, MutableMapping, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas.cart import CartLine

CART_STORAGE_KEY = "cart"


class CartStore(ABC):
    """
    Ordered collection of cart lines keyed by product id.
    Callers own every mutation; the pricing engine only reads lines().
    """

    @abstractmethod
    def get(self, product_id: str) -> Optional[CartLine]:
        ...

    @abstractmethod
    def put(self, line: CartLine) -> None:
        """Insert or replace the line for line.product_id, keeping its position."""

    @abstractmethod
    def remove(self, product_id: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def lines(self) -> List[CartLine]:
        ...


# ---------- In-process store ----------

class InMemoryCartStore(CartStore):
    def __init__(self):
        self._lines: "OrderedDict[str, CartLine]" = OrderedDict()

    def get(self, product_id: str) -> Optional[CartLine]:
        line = self._lines.get(product_id)
        return line.model_copy() if line else None

    def put(self, line: CartLine) -> None:
        self._lines[line.product_id] = line.model_copy()

    def remove(self, product_id: str) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self) -> None:
        self._lines.clear()

    def lines(self) -> List[CartLine]:
        return [line.model_copy() for line in self._lines.values()]


# ---------- Key-value backed store ----------

class KeyValueCartStore(CartStore):
    """
    Keeps the whole cart as one JSON array under a single key of a
    string key-value mapping (browser-style local storage).
    """

    def __init__(self, storage: MutableMapping[str, str], key: str = CART_STORAGE_KEY):
        self._storage = storage
        self._key = key

    def _load(self) -> Dict[str, CartLine]:
        raw = self._storage.get(self._key)
        if not raw:
            return {}
        try:
            items = json.loads(raw)
            lines = [CartLine.model_validate(item) for item in items]
        except (ValueError, TypeError, PydanticValidationError) as e:
            raise ValidationError(
                f"Stored cart under {self._key!r} is corrupt",
                payload={"key": self._key, "error": str(e)},
            )
        return {line.product_id: line for line in lines}

    def _save(self, lines: Dict[str, CartLine]) -> None:
        self._storage[self._key] = json.dumps(
            [line.model_dump(mode="json") for line in lines.values()]
        )

    def get(self, product_id: str) -> Optional[CartLine]:
        return self._load().get(product_id)

    def put(self, line: CartLine) -> None:
        lines = self._load()
        lines[line.product_id] = line
        self._save(lines)

    def remove(self, product_id: str) -> bool:
        lines = self._load()
        if lines.pop(product_id, None) is None:
            return False
        self._save(lines)
        return True

    def clear(self) -> None:
        self._storage.pop(self._key, None)

    def lines(self) -> List[CartLine]:
        return list(self._load().values())
