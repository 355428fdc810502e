"""
================================================================================
portal-automation
================================================================================

Browser UI automation core for a script-rendered web portal: deadline-driven
waits, candidate-based locator resolution, window and frame context, menu
navigation and widget actions over a pluggable browser driver.

Author: Automation Team
License: MIT
================================================================================
"""

__version__ = "1.0.0"
