from __future__ import annotations

import tkinter as tk
from tkinter import ttk


def open_test_window(app, initial_tab: str = "click") -> None:
    if app.test_window is not None:
        try:
            if app.test_window.winfo_exists():
                if app.test_notebook is not None and initial_tab in app.test_tab_frames:
                    app.test_notebook.select(app.test_tab_frames[initial_tab])
                app.test_window.deiconify()
                app.test_window.lift()
                return
        except tk.TclError:
            app.test_window = None
            app.test_notebook = None
            app.test_tab_frames = {}

    window = tk.Toplevel(app.root)
    window.title("Hyprclickr Test Pad")
    window.geometry("560x460")
    window.minsize(420, 360)
    window.transient(app.root)
    window.protocol("WM_DELETE_WINDOW", app._close_test_window)
    app.test_window = window

    container = ttk.Frame(window, padding=10)
    container.pack(fill="both", expand=True)
    container.columnconfigure(0, weight=1)
    container.rowconfigure(0, weight=1)

    notebook = ttk.Notebook(container)
    notebook.grid(row=0, column=0, sticky="nsew")
    app.test_notebook = notebook

    click_tab = ttk.Frame(notebook, padding=10)
    run_log_tab = ttk.Frame(notebook, padding=10)
    notebook.add(click_tab, text="Click Pad")
    notebook.add(run_log_tab, text="Run Log")
    app.test_tab_frames = {
        "click": click_tab,
        "runs": run_log_tab,
    }

    app._build_test_click_tab(click_tab)
    app._build_test_run_log_tab(run_log_tab)

    if initial_tab in app.test_tab_frames:
        notebook.select(app.test_tab_frames[initial_tab])

    app._set_status("Test pad opened")
