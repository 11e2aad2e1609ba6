"""
Slash-separated path helpers.

These operate on URL paths, never on filesystem paths, so `posixpath` and
`os.path` are not used: both would drop the trailing slash that decides
whether a path names a directory.
"""

from typing import List


def normalize_path(path: str) -> str:
    """
    Collapse empty, `.` and `..` segments.

    A leading `/` (or leading `.`) and a trailing `/` survive normalisation,
    `..` above an absolute root is dropped and `..` at the front of a
    relative path is kept.
    """
    segments = path.split("/")
    last = len(segments) - 1
    normalized: List[str] = []

    for index, segment in enumerate(segments):
        if segment == "":
            if index == 0 or index == last:
                normalized.append(segment)
        elif segment == ".":
            if index == 0:
                normalized.append(segment)
        elif segment == "..":
            if normalized and normalized[-1] not in ("", ".", ".."):
                normalized.pop()
            elif normalized == [""]:
                continue
            elif normalized == ["."]:
                normalized[0] = ".."
            else:
                normalized.append(segment)
        else:
            normalized.append(segment)

    if normalized == [""] and path.startswith("/"):
        return "/"
    return "/".join(normalized)


def relative_path(from_path: str, to_path: str) -> str:
    """
    Path that resolves to `to_path` when followed from `from_path`.

    Both paths are treated as files inside their directories: the last
    segment of `from_path` is dropped before comparing, and `to_path` keeps
    its last segment (empty when it ends with a slash) as the file part.
    """
    from_dirs = from_path.split("/")[:-1]
    to_segments = to_path.split("/")
    to_dirs, to_file = to_segments[:-1], to_segments[-1]

    common = 0
    while (common < len(from_dirs) and common < len(to_dirs) and
           from_dirs[common] == to_dirs[common]):
        common += 1

    relative = "../" * (len(from_dirs) - common) + "/".join(to_dirs[common:] + [to_file])
    # An empty reference would resolve to the requesting path itself
    return relative or "./"
