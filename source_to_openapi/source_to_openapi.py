import json
import logging

import click

from .pipeline import (
    CompilerConfig,
    DeclarationLoader,
    DocumentMerger,
    OpenAPIBuildError,
    SchemaCompiler,
    dump_document,
    load_document,
    load_documents,
    load_external_types,
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every parsed schema and path")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Only log errors")
def source_to_openapi(verbose, quiet):
    """Build OpenAPI documents from annotated source declarations."""
    level = logging.INFO if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


@source_to_openapi.command()
@click.option("--output", "-o", default="openapi.yaml", type=click.Path(resolve_path=True))
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--strict", is_flag=True, default=False, help="Exit with an error if anything went wrong")
@click.option("--no-jsonapi-includes", is_flag=True, default=False, help="Do not add includes to JSON:API resources")
@click.option("--vendor", multiple=True, help="Vendored path to parse anyway (repeatable)")
@click.option("--types-file", default=None, type=click.Path(resolve_path=True), help="TSV table of external types")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, resolve_path=True))
def build(output, config, strict, no_jsonapi_includes, vendor, types_file, inputs):
    """Compile declaration dumps (files or directories) into a document."""
    try:
        if config is not None:
            with open(config, encoding="utf-8") as f:
                config = CompilerConfig.from_dict(json.load(f))
        else:
            config = CompilerConfig()

        # CLI flags override the config file
        if strict:
            config.strict = True
        if no_jsonapi_includes:
            config.jsonapi_includes = False
        if vendor:
            config.vendor_paths.extend(vendor)
        if types_file is not None:
            config.external_types.update(load_external_types(types_file))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Failed to decode configuration file: {e}") from e
    except OpenAPIBuildError as e:
        raise click.ClickException(str(e)) from e

    compiler = SchemaCompiler(config)
    try:
        files = DeclarationLoader().load_paths(list(inputs))
        document = compiler.compile(files)
    except OpenAPIBuildError as e:
        raise click.ClickException(str(e)) from e
    finally:
        # Diagnostics are logged as they are recorded, only report the counts
        diagnostics = compiler.diagnostics
        if len(diagnostics):
            click.echo(f"{len(diagnostics.errors)} error(s), {len(diagnostics.warnings)} warning(s)", err=True)

    with open(output, "w", encoding="utf-8") as f:
        f.write(dump_document(document))
    click.echo(f"Wrote {len(document.schemas)} schemas and {len(document.paths)} paths to {output}")


@source_to_openapi.command()
@click.option("--main", "main_file", required=True, type=click.Path(exists=True, resolve_path=True), help="Path of the main file")
@click.option("--dir", "files_dir", required=True, type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option("--output", "-o", default="merged-openapi.yaml", type=click.Path(resolve_path=True))
def merge(main_file, files_dir, output):
    """Merge the YAML documents of a directory into a main document."""
    try:
        with open(main_file, encoding="utf-8") as f:
            main = load_document(f.read())
        DocumentMerger().merge(main, load_documents(files_dir))
    except OpenAPIBuildError as e:
        raise click.ClickException(str(e)) from e

    with open(output, "w", encoding="utf-8") as f:
        f.write(dump_document(main))
