from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING, ClassVar, Optional, Protocol, Union

if TYPE_CHECKING:
    from blogcms import forms
    from blogcms.core import drivers


class MetadataT:
    __slots__ = ()
    __dialect__: ClassVar[drivers.SupportedDialectsT]
    __tablename__: ClassVar[str]
    __querylib__: ClassVar[Union[str, pathlib.Path]]
    __schema__: ClassVar[Optional[pathlib.Path]]


class EditorProtocolT(Protocol):
    """Anything which can hand post content off to a user for editing."""

    def edit_content(
        self, title: str, author: str, existing_content: str, is_update: bool
    ) -> str:
        ...

    def is_available(self) -> bool:
        ...

    def describe(self) -> str:
        ...


class FormProtocolT(Protocol):
    """Anything which can interactively collect the fields of a new post.

    Raises:
        FormCancelled: If the user backs out of the form.
    """

    def run(
        self, initial: Optional[forms.PostFormData] = None, *, use_editor: bool = False
    ) -> forms.PostFormData:
        ...
