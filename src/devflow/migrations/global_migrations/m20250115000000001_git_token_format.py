# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Migration 20250115000000001: provider-specific git tokens.

Older configs stored a single GIT_TOKEN together with GIT_PROVIDER
("github" or "gitlab"). Tokens are now stored per provider.

This migration:
- Moves GIT_TOKEN to GITHUB_TOKEN or GITLAB_TOKEN based on GIT_PROVIDER
- Keeps an already configured (non-empty) provider token
- Removes GIT_TOKEN and GIT_PROVIDER
- Leaves the config untouched when the provider is unknown, so the user
  can fix it with `devflow init-config`
"""

from typing import Any, Dict

from ..base import Migration, MigrationScope

PROVIDER_TOKEN_KEYS = {
    'github': 'GITHUB_TOKEN',
    'gitlab': 'GITLAB_TOKEN',
}


class GitTokenFormat(Migration):
    migration_id = '20250115000000001'
    description = 'Migrate Git token configuration from GIT_TOKEN/GIT_PROVIDER to GITHUB_TOKEN/GITLAB_TOKEN format'
    scope = MigrationScope.GLOBAL
    is_prerequisite = False

    def up(self, config: Dict[str, Any]) -> Dict[str, Any]:
        old_token = config.get('GIT_TOKEN')
        if not isinstance(old_token, str) or not old_token.strip():
            # No old token, nothing to migrate
            return config

        provider = config.get('GIT_PROVIDER')
        if not isinstance(provider, str) or provider not in PROVIDER_TOKEN_KEYS:
            self.logger.debug(
                "GIT_TOKEN found without a known GIT_PROVIDER; run 'devflow init-config' to set provider tokens"
            )
            return config

        new_key = PROVIDER_TOKEN_KEYS[provider]
        existing = config.get(new_key)
        if not isinstance(existing, str) or not existing.strip():
            config[new_key] = old_token.strip()

        del config['GIT_TOKEN']
        del config['GIT_PROVIDER']
        return config

    def down(self, config: Dict[str, Any]) -> Dict[str, Any]:
        # Best effort: when both tokens exist we cannot tell which one was the original
        if 'GIT_TOKEN' in config:
            return config

        for provider, key in PROVIDER_TOKEN_KEYS.items():
            if key in config:
                config['GIT_TOKEN'] = config.pop(key)
                config['GIT_PROVIDER'] = provider
                break

        return config
