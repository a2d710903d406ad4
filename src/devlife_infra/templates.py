"""Built-in file templates and embedded seed literals."""
from __future__ import annotations

from string import Template
from typing import Dict, List, Mapping

BACKEND_ENV = Template(
    """# Database Configuration (Docker internal network)
DATABASE_URL=$postgres_url
MONGODB_URL=$mongodb_url
REDIS_URL=$redis_url

# For local development (outside Docker)
# DATABASE_URL=$postgres_local_url
# MONGODB_URL=$mongodb_local_url
# REDIS_URL=$redis_local_url

# Application Settings
ASPNETCORE_ENVIRONMENT=Development
CORS_ORIGINS=$frontend_url

# External APIs (add your keys)
GITHUB_CLIENT_ID=your_github_client_id
GITHUB_CLIENT_SECRET=your_github_client_secret
OPENAI_API_KEY=your_openai_api_key

# Session Configuration
SESSION_TIMEOUT_MINUTES=30
"""
)

ANGULAR_ENVIRONMENT = Template(
    """export const environment = {
  production: false,
  apiUrl: '$backend_url',
  wsUrl: '$backend_ws_url/hubs',
  appName: '$project_name',
  theme: 'dark',
  colors: {
    primary: '#6366f1',
    success: '#10b981',
    danger: '#ef4444',
    background: '#0f172a'
  },
  casino: {
    initialPoints: 1000
  },
  features: {
    githubIntegration: true
  }
};
"""
)

TEMPLATES: Dict[str, Template] = {
    "backend_env": BACKEND_ENV,
    "angular_environment": ANGULAR_ENVIRONMENT,
}

# Minimal data set inserted when the db-scripts collection script cannot be run.
MONGO_FALLBACK_SEED = """
db.code_snippets.insertMany([
  { language: 'javascript', title: 'Array flatten', difficulty: 'easy', code: 'const flat = arr.flat(Infinity);', isCorrect: true },
  { language: 'python', title: 'Mutable default', difficulty: 'medium', code: 'def add(item, items=[]):\\n    items.append(item)\\n    return items', isCorrect: false }
]);
db.dating_profiles.insertMany([
  { name: 'Ada', techStack: ['python', 'rust'], bio: 'Refactors on the first date.' },
  { name: 'Linus', techStack: ['c', 'git'], bio: 'Prefers patches over small talk.' }
]);
db.meeting_excuses.insertMany([
  { category: 'technical', text: 'The CI pipeline needs me.', believability: 8 },
  { category: 'personal', text: 'My rubber duck has a stand-up.', believability: 3 }
]);
db.horoscopes.insertMany([
  { sign: 'aries', text: 'Merge conflicts resolve themselves today.' },
  { sign: 'taurus', text: 'Avoid deploying on Friday.' }
]);
print('fallback seed inserted');
"""


def render_template(name: str, values: Mapping[str, str]) -> str:
    """Render a built-in template; unknown placeholders are left in place."""

    try:
        template = TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown template: {name}") from None
    return template.safe_substitute(values)


def missing_values(name: str, values: Mapping[str, str]) -> List[str]:
    """Placeholders of template ``name`` that ``values`` does not provide."""

    return [identifier for identifier in TEMPLATES[name].get_identifiers() if identifier not in values]
