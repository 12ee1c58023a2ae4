"""Extension based language lookup used for statistics and code fences."""

import os

LANGUAGES = {
    '.go': 'go', '.py': 'python', '.js': 'javascript', '.jsx': 'javascript',
    '.mjs': 'javascript', '.cjs': 'javascript',
    '.ts': 'typescript', '.tsx': 'typescript', '.java': 'java', '.kt': 'kotlin',
    '.c': 'c', '.h': 'c', '.cpp': 'cpp', '.cc': 'cpp', '.hpp': 'cpp',
    '.cs': 'csharp', '.rb': 'ruby', '.php': 'php', '.rs': 'rust',
    '.swift': 'swift', '.scala': 'scala', '.sh': 'bash', '.bash': 'bash',
    '.ps1': 'powershell', '.sql': 'sql', '.html': 'html', '.css': 'css',
    '.scss': 'scss', '.vue': 'vue', '.lua': 'lua', '.pl': 'perl', '.r': 'r',
    '.json': 'json', '.yaml': 'yaml', '.yml': 'yaml', '.toml': 'toml',
    '.xml': 'xml', '.ini': 'ini', '.md': 'markdown', '.rst': 'rst',
    '.txt': 'text', '.dockerfile': 'dockerfile',
}

SPECIAL_NAMES = {
    'Dockerfile': 'dockerfile',
    'Makefile': 'makefile',
    'go.mod': 'go',
    'go.sum': 'text',
}

# Prose formats: tokenized as natural-language text rather than code
TEXT_LANGUAGES = {'markdown', 'rst', 'text'}


def detect_language(path: str) -> str:
    """Guess a language name from the file name; '' when unknown."""
    name = os.path.basename(path)
    if name in SPECIAL_NAMES:
        return SPECIAL_NAMES[name]
    return LANGUAGES.get(os.path.splitext(name)[1].lower(), '')


def is_code_file(path: str) -> bool:
    """True unless the file is prose (markdown, reStructuredText, plain text)."""
    return detect_language(path) not in TEXT_LANGUAGES
