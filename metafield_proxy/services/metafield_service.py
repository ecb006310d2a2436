import logging
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class MetafieldService:
    """Selects metafields out of the raw lists BigCommerce returns.

    Upstream order is authoritative: when BigCommerce hands back two entries
    with the same namespace and key, the first one wins.
    """

    @staticmethod
    def _entries(items: Optional[Iterable[Any]]) -> List[Dict[str, Any]]:
        return [item for item in (items or []) if isinstance(item, dict)]

    def find_metafield(self, items: Optional[Iterable[Any]], namespace: str, key: str) -> Optional[Dict[str, Any]]:
        for item in self._entries(items):
            if item.get('namespace') == namespace and item.get('key') == key:
                return item
        return None

    def filter_metafields(self, items: Optional[Iterable[Any]], namespace: str,
                          key: Optional[str] = None) -> List[Dict[str, Any]]:
        matched = []
        for item in self._entries(items):
            if item.get('namespace') != namespace:
                continue
            if key is not None and item.get('key') != key:
                continue
            matched.append({
                'namespace': item.get('namespace'),
                'key': item.get('key'),
                'value': item.get('value'),
            })
        return matched

    def fields_by_key(self, items: Optional[Iterable[Any]], namespace: str,
                      key: Optional[str] = None) -> Dict[str, Optional[str]]:
        """Map key -> value for one namespace; keys without a match are left out."""
        fields: Dict[str, Optional[str]] = {}
        for item in self.filter_metafields(items, namespace, key):
            mf_key = item.get('key')
            if mf_key is None or mf_key in fields:
                continue
            fields[mf_key] = item.get('value')
        return fields

    def project_variant(self, variant_id: int, items: Optional[Iterable[Any]], namespace: str, key: str) -> Dict[str, Any]:
        match = self.find_metafield(items, namespace, key)
        if match is None:
            logger.debug(f"No metafield {namespace}/{key} on variant {variant_id}")
        return {
            'variantId': variant_id,
            'namespace': namespace,
            'key': key,
            'value': match.get('value') if match else None,
        }


metafield_service = MetafieldService()
