"""
KYC Service package for the KYC Registry.

This package keeps a directory of organizations that assert identity
tags about users, and evaluates boolean tag expressions such as
``acme.kyc_level@`passed` && (acme.region@`eu` || acme.region@`uk`)``.
It provides:

- app.main: API surface for directory operations, evaluation and health.
- app.store: Tag store holding organizations and user tag records.
- app.directory: Admin-checked organization lifecycle and tag updates.
- app.expression: Tag expression parser and evaluator.

Guidelines:
- Mutations are all-or-nothing; checks run before any write.
- Evaluation is total: missing data is false, only parse errors raise.
"""
