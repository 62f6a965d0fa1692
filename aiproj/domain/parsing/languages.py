"""Fenced-block language tags and the file extensions they map to."""

# Keys are lower-cased language tags as written after the opening fence
LANGUAGE_EXTENSIONS: dict[str, str] = {
    "kotlin": "kt",
    "kt": "kt",
    "kts": "kts",
    "java": "java",
    "python": "py",
    "py": "py",
    "javascript": "js",
    "js": "js",
    "jsx": "jsx",
    "typescript": "ts",
    "ts": "ts",
    "tsx": "tsx",
    "json": "json",
    "yaml": "yaml",
    "yml": "yml",
    "xml": "xml",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "bash": "sh",
    "sh": "sh",
    "shell": "sh",
    "zsh": "sh",
    "markdown": "md",
    "md": "md",
    "gradle": "gradle",
    "groovy": "groovy",
    "swift": "swift",
    "go": "go",
    "golang": "go",
    "rust": "rs",
    "rs": "rs",
    "c": "c",
    "h": "h",
    "cpp": "cpp",
    "c++": "cpp",
    "csharp": "cs",
    "cs": "cs",
    "c#": "cs",
    "ruby": "rb",
    "rb": "rb",
    "php": "php",
    "sql": "sql",
    "toml": "toml",
    "ini": "ini",
    "dart": "dart",
    "properties": "properties",
    "dockerfile": "dockerfile",
    "text": "txt",
    "txt": "txt",
    "plaintext": "txt",
}

DEFAULT_EXTENSION = "txt"

# Files commonly written without an extension
BARE_FILENAMES = frozenset({
    "Makefile",
    "Dockerfile",
    "LICENSE",
    "README",
    "Procfile",
    "Gemfile",
    "Rakefile",
    "Jenkinsfile",
    "Vagrantfile",
    "gradlew",
    "mvnw",
})


def extension_for(language: str | None) -> str:
    if not language:
        return DEFAULT_EXTENSION
    return LANGUAGE_EXTENSIONS.get(language.lower(), DEFAULT_EXTENSION)


def is_known_language(token: str) -> bool:
    return token.lower() in LANGUAGE_EXTENSIONS


def looks_like_filename(token: str) -> bool:
    """True for ``name.ext``, ``dir/name.ext`` or a well-known bare name."""
    name = token.replace("\\", "/").rpartition("/")[2]
    if not name:
        return False
    if name in BARE_FILENAMES:
        return True
    stem, dot, ext = name.rpartition(".")
    return bool(dot and ext and (stem or name.startswith(".")))
