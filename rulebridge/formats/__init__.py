from rulebridge.formats.base import IRuleParser, IRuleWriter
from rulebridge.formats.registry import Format

__all__ = ["Format", "IRuleParser", "IRuleWriter"]
