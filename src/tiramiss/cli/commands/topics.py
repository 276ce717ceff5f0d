import click

from tiramiss.cli.error_boundary import cli_error_boundary
from tiramiss.cli.output import machine_output, user_output
from tiramiss.core.context import TiramissContext
from tiramiss.core.topics import read_topics, resolve_topic_ref


@click.command("topics")
@click.option(
    "--resolve",
    "resolve_refs",
    is_flag=True,
    help="Also resolve each topic to the reference that would be applied.",
)
@click.pass_obj
@cli_error_boundary
def topics_cmd(ctx: TiramissContext, resolve_refs: bool) -> None:
    """Show the topic list in application order.

    The list is read from <tool_dir>/topics.txt, falling back to topics.txt at
    the repository root. With --resolve, each topic is printed next to the
    reference it resolves to; an unknown topic is an error.
    """
    repo_root = ctx.require_repo_root()
    topic_list = read_topics(ctx.config.topic_file_candidates(repo_root))
    if topic_list.path is None:
        user_output("ℹ No topics.txt found")
        return

    user_output(f"Topics from {topic_list.path}: {len(topic_list.topics)} entries")
    for topic in topic_list.topics:
        if resolve_refs:
            ref = resolve_topic_ref(ctx.git, repo_root, topic, ctx.config.fallback_remotes)
            machine_output(f"{topic}\t{ref}")
        else:
            machine_output(topic)
