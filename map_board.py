import logging
import uuid
from typing import List

from api.pydantic_models import MapPin, PinRequest, PinStatus, PinType
from api.sanitization import sanitize_string

logger = logging.getLogger(__name__)

PINS_KEY = "map_pins"

INITIAL_PINS = [
    MapPin(id="p1", x=45, y=30, type=PinType.FULL_BIN, description="Blue bin overflow near library", status=PinStatus.OPEN),
    MapPin(id="p2", x=70, y=60, type=PinType.HAZARD, description="Slippery floor in walkway", status=PinStatus.RESOLVED),
]


class PinNotFound(LookupError):
    pass


class MapBoard:
    """Campus issue pins, positioned in percent of the reference map image."""

    def __init__(self, redis_client):
        self.redis = redis_client

    def _ensure_seeded(self):
        if self.redis.exists(PINS_KEY):
            return
        for pin in INITIAL_PINS:
            self.redis.hset(PINS_KEY, pin.id, pin.model_dump_json())

    def list_pins(self) -> List[MapPin]:
        self._ensure_seeded()
        pins = [MapPin.model_validate_json(raw) for raw in self.redis.hgetall(PINS_KEY).values()]
        return sorted(pins, key=lambda pin: pin.id)

    def get_pin(self, pin_id: str) -> MapPin:
        self._ensure_seeded()
        raw = self.redis.hget(PINS_KEY, pin_id)
        if not raw:
            raise PinNotFound(f"No pin with id {pin_id!r}")
        return MapPin.model_validate_json(raw)

    def build_pin(self, req: PinRequest) -> MapPin:
        return MapPin(
            id=uuid.uuid4().hex[:12],
            x=round(req.x, 2),
            y=round(req.y, 2),
            type=req.type,
            description=sanitize_string(req.description, max_length=500),
            status=PinStatus.OPEN,
        )

    def add_pin(self, pin: MapPin) -> MapPin:
        self._ensure_seeded()
        self.redis.hset(PINS_KEY, pin.id, pin.model_dump_json())
        logger.info(f"New {pin.type.value} pin {pin.id} at ({pin.x}, {pin.y})")
        return pin

    def set_status(self, pin_id: str, status: PinStatus) -> MapPin:
        pin = self.get_pin(pin_id)
        updated = pin.transition(status)
        if updated is not pin:
            self.redis.hset(PINS_KEY, pin_id, updated.model_dump_json())
            logger.info(f"Pin {pin_id} moved {pin.status.value} -> {updated.status.value}")
        return updated

    def open_count(self) -> int:
        return sum(1 for pin in self.list_pins() if pin.status == PinStatus.OPEN)
