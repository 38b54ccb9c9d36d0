"""
Command line reconstruction for the ``x-generated-by`` header of a type graph.
"""

from pathlib import Path

import click

COMMAND_NAME = "openapi_to_code"


def _format_value(value) -> str:
    # Existing files (document, output, config) are shown by name only
    if isinstance(value, (str, Path)):
        path_obj = Path(str(value))
        return path_obj.name if path_obj.exists() else str(value)
    return str(value)


def _option_tokens(option: click.Option, value) -> list[str]:
    """Tokens that reproduce one option; empty when it was left at its default."""
    if not value or (option.default is not None and value == option.default):
        return []
    flag = option.opts[0] if option.opts else f"--{option.name}"
    if option.is_flag:
        return [flag]
    # --import-mapping DOC=PKG is repeated once per mapped document
    values = value if option.multiple else (value,)
    tokens = []
    for item in values:
        tokens.extend([flag, _format_value(item)])
    return tokens


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Rebuild the invocation of the running command from its Click context.

    Positional arguments (document, output) come first, followed by every
    option that differs from its default, in declaration order.

    Args:
        click_command: The command whose parameters are inspected

    Returns:
        Command line string, or the bare command name outside a Click context
    """
    try:
        params = click.get_current_context().params
    except RuntimeError:
        return COMMAND_NAME

    arguments, options = [], []
    for param in click_command.params:
        value = params.get(param.name)
        if isinstance(param, click.Argument):
            if value:
                arguments.append(_format_value(value))
        elif isinstance(param, click.Option):
            options.extend(_option_tokens(param, value))

    return " ".join([COMMAND_NAME, *arguments, *options])
