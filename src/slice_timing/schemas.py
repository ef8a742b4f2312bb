"""Pydantic models for the JSON boundary: slices, slice groups and timing logs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .slices import TimeSlice, TimeSliceGroup


class TimeSliceRecord(BaseModel):
    """Serialized form of a single finished time slice."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime", description="When the slice started.")
    stop_time: datetime = Field(..., alias="stopTime", description="When the slice stopped.")

    @model_validator(mode="after")
    def _ensure_ordered(self) -> TimeSliceRecord:
        if self.stop_time < self.start_time:
            raise ValueError("stopTime must not precede startTime.")
        return self

    @classmethod
    def from_slice(cls, time_slice: TimeSlice) -> TimeSliceRecord:
        return cls(start_time=time_slice.start_time, stop_time=time_slice.stop_time)

    def to_slice(self) -> TimeSlice:
        return TimeSlice(self.start_time, self.stop_time)


class TimeSliceGroupRecord(BaseModel):
    """Serialized form of a slice group; entries may be nested groups."""

    slices: list[TimeSliceRecord | TimeSliceGroupRecord] = Field(..., min_length=1)

    @classmethod
    def from_group(cls, group: TimeSliceGroup) -> TimeSliceGroupRecord:
        entries: list[TimeSliceRecord | TimeSliceGroupRecord] = []
        for entry in group.slices:
            if isinstance(entry, TimeSliceGroup):
                entries.append(cls.from_group(entry))
            else:
                entries.append(TimeSliceRecord.from_slice(entry))
        return cls(slices=entries)

    def to_group(self) -> TimeSliceGroup:
        return TimeSliceGroup(
            entry.to_group() if isinstance(entry, TimeSliceGroupRecord) else entry.to_slice()
            for entry in self.slices
        )


TimeSliceGroupRecord.model_rebuild()


class StageTiming(BaseModel):
    """Slices recorded for one labelled stage of an action."""

    label: str
    slices: list[TimeSliceRecord] = Field(default_factory=list)


class ActionTiming(BaseModel):
    """All stages recorded for one action of a builder."""

    model_config = ConfigDict(populate_by_name=True)

    builder_key: str = Field(..., alias="builderKey")
    stages: list[StageTiming] = Field(default_factory=list)


class TimingLog(BaseModel):
    """Top-level timing log document."""

    actions: list[ActionTiming] = Field(default_factory=list)
