import shutil
from pathlib import Path

SUCCESS_FILE_NAME = "_SUCCESS"


class Dataset:
    """
    An output directory holding the files of one pipeline run.

    A dataset is marked as complete/done using an empty file called "_SUCCESS"
    """
    def __init__(self, path, force=True):
        self.path = Path(path)
        self.force = force

    def mark_done(self):
        if self.path.is_dir():
            (self.path / SUCCESS_FILE_NAME).touch()

    def is_done(self):
        return (self.path / SUCCESS_FILE_NAME).exists()

    def prepare(self):
        if self.force and self.path.exists():
            shutil.rmtree(self.path)

        self.path.mkdir(parents=True, exist_ok=True)

    def file(self, name):
        return self.path / name
