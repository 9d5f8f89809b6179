"""Built-in Commands and their CLI handlers."""

from opentasks.commands.agent import AgentCommand
from opentasks.commands.clean import CleanCommand
from opentasks.commands.files import ReadCommand, WriteCommand
from opentasks.commands.handlers import builtin_handlers
from opentasks.commands.join import JoinCommand
from opentasks.commands.regex import ExtractCommand, MatchCommand
from opentasks.commands.replace import ReplaceCommand, TemplateCommand
from opentasks.commands.set import SetCommand
from opentasks.commands.transform import TRANSFORMS, JsonTransformCommand, TextTransformCommand

__all__ = [
    "AgentCommand",
    "CleanCommand",
    "ExtractCommand",
    "JoinCommand",
    "JsonTransformCommand",
    "MatchCommand",
    "ReadCommand",
    "ReplaceCommand",
    "SetCommand",
    "TRANSFORMS",
    "TemplateCommand",
    "TextTransformCommand",
    "WriteCommand",
    "builtin_handlers",
]
