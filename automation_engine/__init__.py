"""Automation engine.

Executes user-authored automation blueprints: ordered trees of action,
condition, loop, delay and AI-agent-call steps. Actions reach arbitrary third
party platforms through a universal integrator that discovers each platform's
OpenAPI description at runtime, builds authentication from stored credentials
and performs the HTTP call. Run progress is persisted after every step so that
callers can follow an execution while it is still running.

Packages:

- ``blueprint``: validated blueprint models (a tagged union of step types).
- ``integrations``: platform discovery, auth header construction, the
  universal API caller and credential loading.
- ``agents``: AI agent invocation over pluggable LLM providers.
- ``runtime``: execution context, template resolution, the condition
  expression parser and the step interpreter.
- ``repos``: repository protocols and their SQLAlchemy implementations.
- ``server``: the FastAPI service exposing executions, runs and platforms.
"""

__version__ = "0.1.0"
