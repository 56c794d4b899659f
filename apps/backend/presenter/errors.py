from __future__ import annotations


class PresentationError(Exception):
    """Precondition violation in slide management or playback."""


class NoPresentationLoaded(PresentationError):
    def __init__(self) -> None:
        super().__init__("No presentation loaded")


class InvalidSlideData(PresentationError, ValueError):
    def __init__(self, detail: str = "") -> None:
        super().__init__(f"Invalid slide data{': ' + detail if detail else ''}")


class InvalidSlideId(PresentationError, ValueError):
    def __init__(self) -> None:
        super().__init__("Invalid slide ID")


class SlideNotFound(PresentationError, LookupError):
    def __init__(self, slide_id: str) -> None:
        super().__init__(f"Slide not found: {slide_id}")
        self.slide_id = slide_id


class InvalidSlideIndex(PresentationError, IndexError):
    def __init__(self, index: object) -> None:
        super().__init__(f"Invalid slide index: {index}")
        self.index = index


class ViewRequired(PresentationError, ValueError):
    def __init__(self) -> None:
        super().__init__("A mindmap view is required")
