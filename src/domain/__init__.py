"""
Domain Layer - Pure Ledger Logic

This layer contains:
- Entities: Positions and following relationships
- Value Objects: Fixed-point arithmetic helpers
- Services: PnL/settlement math, the position ledger, partial-sell allocation
  and copy-trading delegation

No external dependencies allowed in this layer.
"""
