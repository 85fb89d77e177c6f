"""Test suite for dreamloom.

Test Structure:
- unit/capability/: Artifact codec, errors, provider clients, factory
- unit/orchestration/: Batch fan-out, parallel replicas, narrative pipeline, cancellation
- unit/config/: Config models and loaders
- unit/services/: Task routing
- unit/cli/: Command-line interface
- conftest.py: Shared fixtures and the in-memory FakeCapability
"""
