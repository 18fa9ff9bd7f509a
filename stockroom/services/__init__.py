# Services package init
"""
Stockroom — Services Layer
============================

What:  Business logic between routes (HTTP) and the store or outbound clients.

Service Inventory:
    - InventoryService:     list/create inventory items (SQLAlchemy)
    - OrderEventPublisher:  order → Azure Event Hubs batch
    - UserDirectoryClient:  user lookup over HTTP with tenacity retries
"""
