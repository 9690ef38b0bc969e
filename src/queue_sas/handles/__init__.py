"""Queue handle backends — the capability interface plus Azure and in-memory implementations."""

from queue_sas.handles.azure import AzureQueueHandle
from queue_sas.handles.base import QueueHandle, sign_with_account_key
from queue_sas.handles.memory import InMemoryQueueHandle

__all__ = [
    "AzureQueueHandle",
    "InMemoryQueueHandle",
    "QueueHandle",
    "sign_with_account_key",
]
