"""
Toolwire: Function-Calling Dispatch for LLM Agents.

When a model decides to use a tool it emits a tool call: a function name plus
a mapping of arguments. This package turns that request into an action and the
action back into something the model can read.

Layers (bottom to top):
    1. Retry harness (bounded attempts, fixed backoff)
    2. Tool registry (name -> handler, validated against declarations)
    3. Tool dispatcher (resolve, invoke, normalize into an envelope)
    4. Built-in tools (video transcripts, calculator)
    5. Call summaries (human-readable log lines for a batch of calls)
"""

__version__ = "0.1.0"
