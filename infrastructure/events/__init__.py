from .event_bus_interface import EventBus
from .factory import create_event_bus, get_event_bus, reset_event_bus
from .in_memory_event_bus import InMemoryEventBus
from .redis_event_bus import RedisEventBus


__all__ = ["EventBus", "InMemoryEventBus", "RedisEventBus", "create_event_bus", "get_event_bus", "reset_event_bus"]
