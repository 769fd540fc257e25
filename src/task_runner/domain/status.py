from pydantic import BaseModel, Field


class SchedulerStatus(BaseModel):
    """
    Point-in-time snapshot of a scheduler's slot usage.
    """
    running: int = Field(..., description="Tasks currently executing")
    queued: int = Field(..., description="Tasks waiting for a free slot")
    limit: int = Field(..., description="Maximum number of tasks allowed to run at once")
    available_slots: int = Field(..., description="Slots free for immediate admission")

    @property
    def is_idle(self) -> bool:
        return self.running == 0 and self.queued == 0
