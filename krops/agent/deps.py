from dataclasses import dataclass

from krops.languages import Language


@dataclass
class ScanDeps:
    language: Language
    description: str = ""
