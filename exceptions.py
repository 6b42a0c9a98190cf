# exceptions.py


class FilenameError(ValueError):
    """Raised when a filename does not follow the instrument naming grammar."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class FileOperationError(OSError):
    """Raised when a rename, move or delete on the working tree fails."""


class StackAssemblyError(RuntimeError):
    """Raised when the files of one group cannot be joined into a stack."""

    def __init__(self, group_name: str, reason: str):
        super().__init__(f"Cannot assemble {group_name}: {reason}")
        self.group_name = group_name
        self.reason = reason
