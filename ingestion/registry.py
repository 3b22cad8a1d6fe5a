"""
Registry mapping source keys to their fetch/parse adapters
"""

from typing import Dict, Iterable, Union
import logging

from core.exceptions import UnknownSourceError
from ingestion.sources.base import SourceAdapter
from ingestion.sources.carelink import CarelinkAdapter
from ingestion.sources.dexcom import DexcomAdapter
from ingestion.sources.diasend import DiasendAdapter
from ingestion.sources.tconnect import TConnectAdapter
from models.base import SourceKey

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Closed mapping of SourceKey -> SourceAdapter.

    validate() is called once at job start so a missing adapter fails the
    job before any fetch is issued.
    """
    
    def __init__(self, adapters: Iterable[SourceAdapter]):
        self._adapters: Dict[SourceKey, SourceAdapter] = {}
        for adapter in adapters:
            self._adapters[adapter.source] = adapter
    
    def get(self, source: Union[SourceKey, str]) -> SourceAdapter:
        """Adapter for a source key; UnknownSourceError if none is registered"""
        try:
            key = SourceKey(source)
        except ValueError:
            raise UnknownSourceError(str(source))
        
        adapter = self._adapters.get(key)
        if adapter is None:
            raise UnknownSourceError(key.value)
        return adapter
    
    def validate(self) -> None:
        """Ensure every source key has an adapter"""
        for key in SourceKey:
            if key not in self._adapters:
                raise UnknownSourceError(
                    key.value,
                    context={"registered": sorted(k.value for k in self._adapters)}
                )
        logger.debug(f"Source registry complete: {[k.value for k in self._adapters]}")
    
    def __contains__(self, source: Union[SourceKey, str]) -> bool:
        try:
            return SourceKey(source) in self._adapters
        except ValueError:
            return False


def default_registry() -> SourceRegistry:
    """Registry with the shipped adapter for every source key"""
    return SourceRegistry([
        CarelinkAdapter(),
        DiasendAdapter(),
        TConnectAdapter(),
        DexcomAdapter(),
    ])
