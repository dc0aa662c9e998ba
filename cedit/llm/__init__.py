"""LLM access: provider adapters, stream decoding and the completion client.

- **client**: ``CompletionClient`` (token budget + retry + lazy envelope stream)
- **decoder**: provider chunks -> ``CommandEnvelope``
- **provider**: ``StreamProvider`` protocol and the Anthropic adapter
- **tokens**: swappable prompt size estimation
- **constants**: the text-editor tool descriptor
"""
