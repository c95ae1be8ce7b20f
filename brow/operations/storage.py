"""localStorage / sessionStorage access."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from . import scripts
from .evaluation import call_function
from .models import StorageType

if TYPE_CHECKING:
    from ..browser.session import TabContext


def get_all_storage(ctx: TabContext, storage_type: StorageType = StorageType.LOCAL) -> dict[str, Any]:
    result = call_function(ctx, scripts.STORAGE_GET_ALL, storage_type.value)
    if isinstance(result, dict):
        return result
    return {}


def get_storage_item(
    ctx: TabContext, storage_type: StorageType, key: str
) -> Optional[str]:
    return call_function(ctx, scripts.STORAGE_GET_ITEM, storage_type.value, key)


def set_storage_item(ctx: TabContext, storage_type: StorageType, key: str, value: str) -> None:
    call_function(ctx, scripts.STORAGE_SET_ITEM, storage_type.value, key, value)


def remove_storage_item(ctx: TabContext, storage_type: StorageType, key: str) -> None:
    call_function(ctx, scripts.STORAGE_REMOVE_ITEM, storage_type.value, key)


def clear_storage(ctx: TabContext, storage_type: StorageType = StorageType.LOCAL) -> None:
    call_function(ctx, scripts.STORAGE_CLEAR, storage_type.value)
