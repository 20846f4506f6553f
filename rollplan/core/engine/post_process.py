"""
Post-processing — finalize display text of a planned grouping.
"""

from __future__ import annotations

from rollplan.core.engine.placeholders import PlaceholderResolver
from rollplan.core.models.plan import UpgradeGroupHolder


def post_process(resolver: PlaceholderResolver, holder: UpgradeGroupHolder) -> None:
    """Render tokens in a group holder, in place.

    Titles, stage text and task summaries are rendered without a
    service/component, so host tokens stay as written there. MANUAL task
    messages are rendered for their task wrapper's service/component.
    """
    holder.title = resolver.render(holder.title)

    for stage in holder.items:
        if stage.text is not None:
            stage.text = resolver.render(stage.text)

        for wrapper in stage.tasks:
            for task in wrapper.tasks:
                if task.summary is not None:
                    task.summary = resolver.render(task.summary)

                if task.is_manual and task.messages:
                    task.messages = [
                        resolver.render(message, wrapper.service, wrapper.component)
                        for message in task.messages
                    ]
