"""Natural-Language Clause Interpreter

Turns a free-text request ("parks after 2021") into a where-clause by asking
a chat-completion model. Replies are cached per request text for a short
time. The returned clause gets no special trust: it goes through the
ordinary clause parser like any other.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from litellm import completion

from geoapi.exceptions import GeoAPIValidationError, InterpretationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a GIS assistant. Convert user natural-language queries into SQL-like 'where' clauses supported by ArcGIS Feature Services.
Only use fields: type (e.g., 'park', 'garden'), year (e.g., 2023), and change (text like "Area changed by 15.2%").
Examples:
- "Show only parks" => "type = 'park'"
- "Parks after 2021" => "type = 'park' AND year > 2021"
- "Features that changed more than 10%" => "change LIKE '%10%'"
Return only the expression without any explanation."""


class TTLCache:
    """Thread-safe TTL cache; expired entries are dropped on access."""
    
    def __init__(self, ttl_seconds: float = 60.0, max_size: int = 500,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.clock = clock
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
    
    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._cache:
                return None
            value, expiry = self._cache[key]
            if self.clock() >= expiry:
                del self._cache[key]
                return None
            return value
    
    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                # Evict the entry closest to expiry
                oldest = min(self._cache, key=lambda k: self._cache[k][1])
                del self._cache[oldest]
            self._cache[key] = (value, self.clock() + self.ttl_seconds)
    
    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


class ClauseInterpreter:
    """Chat-model backed natural-language to where-clause translation."""
    
    def __init__(self, model: str = "gpt-4", cache_ttl_seconds: float = 60.0,
                 temperature: float = 0.2,
                 completion_fn: Callable[..., Any] = completion,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            model: Chat model name understood by litellm
            cache_ttl_seconds: How long an interpreted clause is reused
            temperature: Sampling temperature for the model
            completion_fn: Completion callable (litellm ``completion`` signature)
            clock: Time source for the reply cache
        """
        self.model = model
        self.temperature = temperature
        self.completion_fn = completion_fn
        self._cache = TTLCache(ttl_seconds=cache_ttl_seconds, clock=clock)
    
    def interpret(self, query: str) -> str:
        """Translate a natural-language request into a where-clause.
        
        Raises:
            GeoAPIValidationError: If the request text is empty
            InterpretationError: If the model call fails or returns nothing
        """
        if not query or not query.strip():
            raise GeoAPIValidationError("Missing query")
        
        cached = self._cache.get(query)
        if cached is not None:
            logger.debug(f"Interpretation cache hit for {query!r}")
            return cached
        
        try:
            response = self.completion_fn(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": query},
                ],
                temperature=self.temperature,
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.error(f"Interpretation failed for {query!r}: {e}")
            raise InterpretationError("Interpretation failed", {"error": str(e)})
        
        clause = (content or "").strip()
        if not clause:
            raise InterpretationError("Interpretation returned an empty clause", {"query": query})
        
        self._cache.set(query, clause)
        logger.info(f"AI query {query!r} generated {clause!r}")
        return clause
