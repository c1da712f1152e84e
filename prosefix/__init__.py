"""
# prosefix

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Rule-driven prose normalisation that leaves Markdown code, links and shortcodes alone.
"""
