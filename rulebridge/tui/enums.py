from enum import Enum

from rulebridge.rules.models import Activation


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


ACTIVATION_STYLE = {
    Activation.ALWAYS: UIStyle.GREEN.value,
    Activation.GLOB: UIStyle.CYAN.value,
    Activation.ON_DEMAND: UIStyle.YELLOW.value,
    Activation.AI_DECIDES: UIStyle.MAGENTA.value,
}
