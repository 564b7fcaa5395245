from typing import Optional, Any, Dict

from wards.gateway import PersistenceGateway, get_gateway


def log_action(*, user, action: str, object_type: Optional[str]=None, object_id: Optional[str]=None,
               detail: Optional[Dict[str, Any]]=None, gateway: Optional[PersistenceGateway]=None) -> dict:
    gateway = gateway or get_gateway()
    return gateway.create('audit_events', {
        'user': getattr(user, 'id', None),
        'action': action,
        'object_type': object_type,
        'object_id': str(object_id) if object_id is not None else None,
        'detail': detail or {},
    })
