"""
Processing-component synthesis.

Function groupings (stop/start/restart) let pack authors omit
boilerplate component listings. Stop is always uniform; start and
restart fall back to a single synthesized task only when the pack has
no explicit entry.
"""

from __future__ import annotations

from rollplan.core.models.pack import ProcessingComponent, TaskType, UpgradePack


def resolve_processing(
    pack: UpgradePack,
    service_name: str,
    component: str,
    function: TaskType | None,
) -> ProcessingComponent | None:
    """The processing component to plan for ``service_name/component``.

    Args:
        pack: The upgrade pack.
        service_name: Service being planned.
        component: Component being planned.
        function: The grouping's implicit action, if any.

    Returns:
        The explicit or synthesized component, or None when there is no
        function and the pack declares nothing for this component.
    """
    if function is None:
        return pack.get_processing(service_name, component)

    if function is TaskType.STOP:
        return ProcessingComponent.synthesize(component, TaskType.STOP)

    explicit = pack.get_processing(service_name, component)
    if explicit is not None:
        return explicit

    if function in (TaskType.START, TaskType.RESTART):
        return ProcessingComponent.synthesize(component, function)

    # other functions have nothing to synthesize
    return None
