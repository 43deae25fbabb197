"""Freeshot: free-form lasso screenshots for Wayland.

- Captures one monitor's current frame
- Lets the user draw a lasso over a live preview
- Copies the cropped, alpha-masked selection to the clipboard
"""

__version__ = "0.3.0"
__author__ = "Nick"
