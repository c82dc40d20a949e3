"""Infrastructure Layer for the position ledger.

Concrete adapters for the domain's collaborators and the wiring that binds
them together:
- price_sources: Price source implementations
- transfers: Value-transfer implementations
- audit: Committed event history
- monitoring: Structured logging
- container: Component graph built from ApplicationConfig
"""
