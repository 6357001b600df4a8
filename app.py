#!/usr/bin/env python
"""Main entry point for Custom Case Studio."""

import logging
import sys
import tkinter as tk
from tkinter import messagebox

from ccs.ui import App

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app = App()
        app.mainloop()
    except Exception as e:
        # Catch-all for unexpected errors during App init itself
        logging.getLogger("ccs").exception("Application failed to start")
        try:
            root = tk.Tk()
            root.withdraw()
            messagebox.showerror("Critical Startup Error", f"Application failed to initialize:\n{e}")
            root.destroy()
        except tk.TclError:
            pass
        sys.exit(1)
