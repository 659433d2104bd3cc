from bugtracker_cli.views.bug_list import BugListView
from bugtracker_cli.views.projects import ProjectsView
from bugtracker_cli.views.header import HeaderView

__all__ = ["BugListView", "ProjectsView", "HeaderView"]
