"""
Application Layer - Configuration and Orchestration

This layer contains:
- Configuration: Environment, YAML and .env driven settings
- Services: Administrative operations and account summaries

Depends on domain layer, orchestrates ledger services.
"""
