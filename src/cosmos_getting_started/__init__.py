"""
Azure Cosmos DB for NoSQL getting-started walkthrough.

Creates a database and container, seeds two family documents, queries them
with SQL text and with a typed filter, updates and deletes a document, then
drops the database.
"""

__version__ = "1.0.0"
