#!/usr/bin/env python3
"""
Command-line interface for GitGroup Tools.
"""

import sys
import click

from .cloner import ACTIONS, GroupCloner
from .collector import LISTING_SCOPES, SCOPE_PROJECTS
from .config import Config
from .errors import GitGroupError
from .platforms import SUPPORTED_PLATFORMS


@click.command()
@click.argument('platform', type=click.Choice(SUPPORTED_PLATFORMS, case_sensitive=False))
@click.argument('action', type=click.Choice(ACTIONS, case_sensitive=False))
@click.argument('group')
@click.option('--token', help='API access token (default: $GITLAB_TOKEN / $GITHUB_TOKEN / $GITGROUP_TOKEN)')
@click.option('--base-url', help='API base URL for self-hosted instances (default: $GITLAB_URL / $GITHUB_URL)')
@click.option('--dest', '--destination', 'destination', default=None,
              help='Directory that receives the clones; must be empty or absent (default: ./<group>)')
@click.option('--ssh/--https', 'use_ssh', default=None, help='Clone over SSH instead of HTTPS')
@click.option('--flatten/--no-flatten', default=None,
              help='Clone every repository directly into the destination (always on for GitHub)')
@click.option('--git-args', default=None, help='Extra arguments passed to git clone, e.g. "--depth 1"')
@click.option('--threads', '-j', type=int, default=None, help='Number of concurrent clones')
@click.option('--scope', type=click.Choice(LISTING_SCOPES), default=SCOPE_PROJECTS, show_default=True,
              help='What the list action reports')
@click.option('--api-timeout', type=float, default=None, help='Seconds per API request, 0 for no limit')
@click.option('--clone-timeout', type=float, default=None, help='Seconds per clone, 0 for no limit')
@click.option('--max-depth', type=int, default=None, help='Maximum subgroup nesting depth')
@click.option('--gitlab-pagination/--no-gitlab-pagination', default=None,
              help='Follow GitLab pagination past the first page of each listing')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='JSON configuration file (default: ~/.gitgroup_tools_config.json)')
@click.option('--skip-checks', is_flag=True, help='Skip the git and token checks')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Quiet mode - show only warnings and errors')
def main(platform, action, group, token, base_url, destination, use_ssh, flatten, git_args, threads,
         scope, api_timeout, clone_timeout, max_depth, gitlab_pagination, config_file, skip_checks,
         verbose, quiet):
    """
    List or clone every repository of a GitLab group or GitHub user/organization.

    GitLab groups are walked recursively through all nested subgroups and the
    namespace hierarchy is kept on disk unless --flatten is given.

    \b
    Actions:
      list    print "<Prefix> - <id> - <name>" lines (see --scope)
      clone   clone every repository into --dest
      stream  print "<clone-url>|<namespace>" lines without cloning
    """
    platform = platform.lower()
    action = action.lower()
    config = Config(config_file)

    token = token or config.token_for(platform)
    base_url = base_url or config.base_url_for(platform)
    threads = threads if threads is not None else config.get('threads')
    destination = destination or group.rstrip('/').rsplit('/', 1)[-1]

    if base_url and not config.validate_base_url(base_url):
        raise click.BadParameter(f"'{base_url}' is not an http(s) URL", param_hint='--base-url')
    if not config.validate_threads(threads):
        raise click.BadParameter(f"must be a positive integer, got {threads!r}", param_hint='--threads')
    if action == 'clone' and not config.validate_destination_path(destination):
        raise click.BadParameter(f"'{destination}' cannot be created", param_hint='--dest')

    try:
        cloner = GroupCloner(
            platform,
            token or "",
            destination_path=destination,
            base_url=base_url,
            use_ssh=config.get('use_ssh') if use_ssh is None else use_ssh,
            flatten=config.get('flatten') if flatten is None else flatten,
            git_args=config.get('git_args') if git_args is None else git_args,
            threads=threads,
            api_timeout=config.get('api_timeout') if api_timeout is None else api_timeout,
            clone_timeout=config.get('clone_timeout') if clone_timeout is None else clone_timeout,
            max_depth=config.get('max_depth') if max_depth is None else max_depth,
            gitlab_pagination=config.get('gitlab_pagination') if gitlab_pagination is None else gitlab_pagination,
            quiet=quiet,
            verbose=verbose,
        )
    except GitGroupError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    try:
        if not skip_checks:
            cloner.check_dependencies()
        success = cloner.run(action, group, scope=scope, echo=click.echo)
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        cloner.logger.info("Operation cancelled by user")
        sys.exit(130)
    except GitGroupError as e:
        cloner.logger.error(str(e))
        sys.exit(1)
    finally:
        cloner.close()


if __name__ == '__main__':
    main()
