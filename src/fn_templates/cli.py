"""fn-templates CLI - Command line interface for fn-templates."""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from fn_templates.core.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_STORE_URL,
    STORE_URL_ENV,
    TEMPLATE_URL_ENV,
    SyncOptions,
    get_template_url,
)
from fn_templates.core.errors import (
    AllProtectedError,
    InvalidReferenceError,
    InvalidSourceError,
    RefNotFoundError,
    StackConfigError,
    TemplateSyncError,
)
from fn_templates.stack import load_stack, missing_templates, pull_stack_templates
from fn_templates.stack.config import DEFAULT_STACK_FILE
from fn_templates.store import TemplateStore
from fn_templates.sync import sync_repository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
)
logger = logging.getLogger("fn_templates")


def _exit_code(error: Exception) -> int:
    if isinstance(error, (InvalidReferenceError, RefNotFoundError)):
        return 3
    if isinstance(error, InvalidSourceError):
        return 4
    if isinstance(error, AllProtectedError):
        return 5
    if isinstance(error, StackConfigError):
        return 7
    return 1


def _set_debug(debug: bool) -> None:
    if debug:
        logger.setLevel(logging.DEBUG)


cache_dir_option = click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CACHE_DIR,
    show_default=True,
    help="Local template directory",
)

stack_file_option = click.option(
    "-f",
    "--yaml",
    "stack_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_STACK_FILE,
    show_default=True,
    help="Path to the stack file",
)


@click.group()
def main():
    """fn-templates - Fetch function templates into a local template cache."""
    pass


@main.command()
@click.argument("repository", required=False)
@click.option(
    "--ref",
    default=None,
    help="Branch, tag or sha-<commit> to fetch when REPOSITORY has no #ref",
)
@click.option(
    "--overwrite/--no-overwrite",
    default=False,
    help="Overwrite existing templates",
)
@click.option("--debug", is_flag=True, help="Keep the clone directory and log git output")
@click.option(
    "--require-write",
    is_flag=True,
    help="Fail when every template already exists and nothing was written",
)
@cache_dir_option
def pull(
    repository: Optional[str],
    ref: Optional[str],
    overwrite: bool,
    debug: bool,
    require_write: bool,
    cache_dir: Path,
):
    """Pull templates from a git repository.

    REPOSITORY may be pinned with #<branch-or-tag> or #sha-<commit>. When
    omitted, $FN_TEMPLATES_URL or the default template repository is used.

    Examples:
        fn-templates pull
        fn-templates pull https://github.com/openfaas/templates.git#1.0.0
        fn-templates pull https://github.com/openfaas/templates.git#sha-1a2b3c4d

    Exit codes:
        0: Success
        1: Generic runtime failure, or no template could be written
        2: Invalid CLI usage
        3: Invalid or unknown reference
        4: Invalid repository
        5: Nothing written and --require-write was given
    """
    _set_debug(debug)
    repository = get_template_url(repository, os.environ.get(TEMPLATE_URL_ENV))
    options = SyncOptions(
        cache_dir=cache_dir,
        overwrite=overwrite,
        debug=debug,
        require_write=require_write,
    )

    try:
        result = sync_repository(repository, options, ref=ref)
    except AllProtectedError as e:
        click.echo(f"Cannot overwrite the following (use --overwrite): {', '.join(e.protected)}")
        sys.exit(5)
    except TemplateSyncError as e:
        logger.error(f"Pull failed: {str(e)}")
        sys.exit(_exit_code(e))

    for name in result.protected:
        click.echo(f"Skipped {name}: already exists (use --overwrite)")
    for name in result.unattributed:
        click.echo(f"Wrote {name} without meta.json")
    for name in result.failed:
        click.echo(f"[FAIL] {name}: could not be written")

    click.echo(f"Wrote {len(result.written)} template(s) : {result.written}")
    if result.all_protected:
        click.echo(f"No templates written, {len(result.protected)} already present")
    sys.exit(0)


@main.command("pull-stack")
@stack_file_option
@click.option(
    "--overwrite/--no-overwrite",
    default=True,
    help="Overwrite existing templates",
)
@click.option("--debug", is_flag=True, help="Keep the clone directory and log git output")
@click.option(
    "--store-url",
    envvar=STORE_URL_ENV,
    default=DEFAULT_STORE_URL,
    show_default=True,
    help="Template store index for templates without a source",
)
@cache_dir_option
def pull_stack(
    stack_file: Path,
    overwrite: bool,
    debug: bool,
    store_url: str,
    cache_dir: Path,
):
    """Pull the templates a stack file needs that are not in the cache.

    Templates listed under configuration.templates with a source are pulled
    from that repository; the rest are looked up in the template store.

    Exit codes:
        0: Success
        1: At least one template could not be pulled
        7: Stack file error
    """
    _set_debug(debug)
    try:
        stack = load_stack(stack_file)
    except StackConfigError as e:
        logger.error(f"Invalid stack file: {str(e)}")
        sys.exit(7)

    missing = missing_templates(stack.languages(), cache_dir)
    if not missing:
        click.echo("All templates are already present")
        sys.exit(0)

    options = SyncOptions(cache_dir=cache_dir, overwrite=overwrite, debug=debug)
    outcomes = pull_stack_templates(
        missing,
        stack.template_sources,
        options,
        TemplateStore(url=store_url),
    )

    written = protected = 0
    for outcome in outcomes:
        if outcome.failed:
            click.echo(f"[FAIL] {outcome.name}: {outcome.error}")
            continue
        written += len(outcome.result.written)
        protected += len(outcome.result.protected)
        for name in outcome.result.protected:
            click.echo(f"Skipped {name}: already exists")
        for name in outcome.result.failed:
            click.echo(f"[FAIL] {name}: could not be written")
        click.echo(f"[OK] {outcome.name} from {outcome.origin}")

    failed = [outcome.name for outcome in outcomes if outcome.failed]
    click.echo(f"Wrote {written} template(s), {protected} protected, {len(failed)} failed")
    sys.exit(1 if failed else 0)


@main.command()
@stack_file_option
@cache_dir_option
def missing(stack_file: Path, cache_dir: Path):
    """List templates the stack file needs that are not in the cache."""
    try:
        stack = load_stack(stack_file)
    except StackConfigError as e:
        logger.error(f"Invalid stack file: {str(e)}")
        sys.exit(7)

    for name in missing_templates(stack.languages(), cache_dir):
        click.echo(name)


if __name__ == "__main__":
    main()
