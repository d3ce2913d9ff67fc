from bigcontext.generation.client import ChatGenerator, OpenAIChatGenerator

__all__ = ["ChatGenerator", "OpenAIChatGenerator"]
