# SPDX-License-Identifier: MIT
"""Core components: substitution, installations, command building, launching."""
