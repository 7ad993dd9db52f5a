"""
ticketr - keep a local ticket file and a Jira project in sync.

Pull remote tickets into a local YAML file, push local edits back, and apply
bulk changes to many remote tickets at once. Content hashes recorded after
every sync let ticketr tell which side changed and detect conflicting edits.
"""

__version__ = "1.0.0"
