import json
import logging

import click

from .cli_utils import reconstruct_command_line
from .errors import TypeGraphError
from .pipeline import PipelineGenerator, TypeGraphConfig
from .utils import NAME_NORMALIZERS


def parse_import_mapping(entries) -> dict[str, str]:
    """Parse DOC=PKG pairs given on the command line."""
    mapping = {}
    for entry in entries:
        document, sep, package = entry.partition("=")
        if not sep or not document:
            raise click.BadParameter(f"expected DOC=PKG, got {entry!r}", param_hint="--import-mapping")
        mapping[document] = package
    return mapping


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--language", "-l", default="go", type=click.Choice(["go", "python", "cs"]))
@click.option("--name-normalizer", default=None, type=click.Choice(sorted(NAME_NORMALIZERS)), help="Identifier casing strategy")
@click.option("--import-mapping", "-m", multiple=True, help="Map an external document to a package (DOC=PKG, repeatable)")
@click.option("--prune-unused-components", is_flag=True, default=False, help="Drop components no selected operation reaches")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log pipeline phases")
@click.argument("path", default=None, type=click.Path(exists=True, resolve_path=True))
@click.argument("output", default=None, type=click.Path(resolve_path=True))
def openapi_to_code(config, language, name_normalizer, import_mapping, prune_unused_components, verbose, path, output):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if config is not None:
            config = TypeGraphConfig.from_file(config)
        else:
            config = TypeGraphConfig()

        # CLI options override the config file
        if name_normalizer is not None:
            config.name_normalizer = name_normalizer
        if import_mapping:
            config.import_mapping = {**config.import_mapping, **parse_import_mapping(import_mapping)}
        if prune_unused_components:
            config.prune_unused_components = True

        graph = PipelineGenerator(path, config, language).generate()
    except TypeGraphError as exc:
        raise click.ClickException(str(exc)) from exc

    out = {"x-generated-by": reconstruct_command_line(openapi_to_code), **graph.to_dict()}
    with open(output, "w", encoding="utf-8") as f:
        json.dump(out, f, indent=2, ensure_ascii=False, default=str)
        f.write("\n")
