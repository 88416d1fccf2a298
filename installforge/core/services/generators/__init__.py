"""
Generators — produce bundle files from a recipe.

``install_script.generate_install_script()`` builds ``install.sh`` out of
per-step fragments (``fragments``); ``readme.generate_readme()`` builds
``README.txt``.
"""
