import argparse
import dataclasses
import logging
import threading
import time
import tkinter as tk
from tkinter import messagebox, ttk

from clickengine.config import MAX_CPS, MIN_CPS, default_backend, default_profile_path, default_run_log_path
from clickengine.engine import ClickEngine
from clickengine.errors import UnrecognizedKey
from clickengine.hotkeys import describe_hotkey, format_hotkey, parse_hotkey
from clickengine.injector import BACKENDS, InputInjector, create_injector
from clickengine.listener import HotkeyListener
from clickengine.models import ActivationMode, ClickPattern, MouseButton, Profile
from clickengine.run_log import RunLog
from clickengine.store import ProfileStore
from ui.tabs.profiles_tab import build_profiles_tab as build_profiles_tab_ui
from ui.tabs.settings_tab import build_settings_tab as build_settings_tab_ui
from ui.tests.click_tab import build_test_click_tab as build_test_click_tab_ui
from ui.tests.run_log_tab import build_test_run_log_tab as build_test_run_log_tab_ui
from ui.tests.window import open_test_window as open_test_window_ui


logger = logging.getLogger("hyprclickr")


TEST_PAD_BUTTONS = {1: "left", 2: "middle", 3: "right"}
TEST_PAD_RATE_WINDOW = 1.0
RUN_LOG_VIEW_LIMIT = 50


class HyprclickrApp:
    def __init__(
        self,
        root: tk.Tk,
        store: ProfileStore,
        injector: InputInjector,
        run_log: RunLog | None = None,
    ) -> None:
        self.root = root
        self.root.title("Hyprclickr")
        self.root.geometry("640x460")
        self.root.resizable(False, False)

        self.store = store
        self.run_log = run_log
        self.profiles: list[Profile] = store.load()
        self.selected_index: int | None = 0 if self.profiles else None
        self.running_index: int | None = None

        self.engine = ClickEngine(
            store,
            injector,
            run_log=run_log,
            status_callback=self._set_status,
            state_callback=self._on_engine_state,
        )
        self.hotkey_listener = HotkeyListener(self.engine.on_key_event)

        self.status_var = tk.StringVar(value="Idle")
        self.device_info_var = tk.StringVar(value=f"Input backend: {injector.name}")

        self.name_var = tk.StringVar(value="")
        self.button_var = tk.StringVar(value=MouseButton.LEFT.value)
        self.pattern_var = tk.StringVar(value=ClickPattern.NORMAL.value)
        self.activation_var = tk.StringVar(value=ActivationMode.TOGGLE.value)
        self.hotkey_var = tk.StringVar(value="<f8>")
        self.cps_var = tk.StringVar(value="10")
        self.enabled_var = tk.BooleanVar(value=False)

        self.profile_listbox: tk.Listbox | None = None
        self.settings_frame: ttk.LabelFrame | None = None

        self.test_window: tk.Toplevel | None = None
        self.test_notebook: ttk.Notebook | None = None
        self.test_tab_frames: dict[str, ttk.Frame] = {}
        self.test_pad_canvas: tk.Canvas | None = None
        self.test_run_log_tree: ttk.Treeview | None = None
        self.test_press_counts: dict[str, int] = {}
        self.test_press_times: list[float] = []
        self.test_drag_distance = 0
        self.test_last_motion: tuple[int, int] | None = None

        self.test_counts_var = tk.StringVar(value="")
        self.test_rate_var = tk.StringVar(value="")
        self.test_drag_var = tk.StringVar(value="")

        self._build_ui()
        self._refresh_profile_list()
        self._load_selected_into_form()

        self._start_engine()
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)

    def _build_ui(self) -> None:
        container = ttk.Frame(self.root, padding=10)
        container.pack(fill="both", expand=True)
        container.columnconfigure(1, weight=1)
        container.rowconfigure(1, weight=1)

        ttk.Label(
            container,
            text="Hyprclickr",
            font=("Segoe UI", 15, "bold"),
        ).grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 8))

        profiles_tab = ttk.Frame(container)
        profiles_tab.grid(row=1, column=0, sticky="nsw", padx=(0, 10))
        settings_tab = ttk.Frame(container)
        settings_tab.grid(row=1, column=1, sticky="nsew")

        self._build_profiles_tab(profiles_tab)
        self._build_settings_tab(settings_tab)

        footer = ttk.Frame(container)
        footer.grid(row=2, column=0, columnspan=2, sticky="ew", pady=(8, 0))
        footer.columnconfigure(0, weight=1)

        ttk.Label(footer, textvariable=self.status_var, foreground="#1f2937").grid(row=0, column=0, sticky="w")
        ttk.Label(footer, textvariable=self.device_info_var, foreground="#4b5563").grid(
            row=1, column=0, sticky="w"
        )
        ttk.Button(footer, text="Retry device", command=self._retry_device).grid(
            row=0, column=1, rowspan=2, sticky="e", padx=(8, 0)
        )
        ttk.Button(footer, text="Test pad", command=self._open_test_window).grid(
            row=0, column=2, rowspan=2, sticky="e", padx=(6, 0)
        )

    def _build_profiles_tab(self, tab: ttk.Frame) -> None:
        build_profiles_tab_ui(self, tab)

    def _build_settings_tab(self, tab: ttk.Frame) -> None:
        build_settings_tab_ui(self, tab)

    def _open_test_window(self, initial_tab: str = "click") -> None:
        open_test_window_ui(self, initial_tab)

    def _build_test_click_tab(self, tab: ttk.Frame) -> None:
        build_test_click_tab_ui(self, tab)

    def _build_test_run_log_tab(self, tab: ttk.Frame) -> None:
        build_test_run_log_tab_ui(self, tab)

    def _set_status(self, text: str) -> None:
        if threading.current_thread() is threading.main_thread():
            try:
                self.status_var.set(text)
            except tk.TclError:
                pass
            return

        try:
            self.root.after(0, lambda value=text: self.status_var.set(value))
        except (tk.TclError, RuntimeError):
            pass

    def _on_engine_state(self, active_index: int | None) -> None:
        try:
            self.root.after(0, lambda value=active_index: self._apply_engine_state(value))
        except (tk.TclError, RuntimeError):
            pass

    def _apply_engine_state(self, active_index: int | None) -> None:
        self.running_index = active_index
        self._refresh_profile_list()

    def _start_engine(self) -> None:
        if not self.engine.start():
            error = self.engine.device_error
            detail = error.describe() if error is not None else "unknown error"
            self.device_info_var.set(f"Input backend: {self.engine.device.injector.name} (unavailable)")
            try:
                messagebox.showwarning(
                    "Clicking unavailable",
                    f"The virtual input device could not be created.\n\n{detail}\n\n"
                    "Profiles can still be edited; hotkeys will not click until the device opens.",
                    parent=self.root,
                )
            except tk.TclError:
                pass

        try:
            self.hotkey_listener.start()
        except Exception as exc:
            logger.error("Global hotkey listener failed: %s", exc)
            self._set_status(f"Hotkey listener failed: {exc}")

    def _retry_device(self) -> None:
        name = self.engine.device.injector.name
        if self.engine.open_device():
            self.device_info_var.set(f"Input backend: {name}")
        else:
            self.device_info_var.set(f"Input backend: {name} (unavailable)")

    def _profile_label(self, index: int, profile: Profile) -> str:
        marker = ">" if index == self.running_index else " "
        enabled = "on " if profile.active else "off"
        return f"{marker} [{enabled}] {profile.name}  ({describe_hotkey(profile.hotkey)})"

    def _refresh_profile_list(self) -> None:
        if self.profile_listbox is None:
            return

        self.profile_listbox.delete(0, tk.END)
        for index, profile in enumerate(self.profiles):
            self.profile_listbox.insert(tk.END, self._profile_label(index, profile))

        if self.selected_index is not None and self.selected_index >= len(self.profiles):
            self.selected_index = len(self.profiles) - 1 if self.profiles else None

        if self.selected_index is not None:
            self.profile_listbox.selection_set(self.selected_index)
            self.profile_listbox.see(self.selected_index)

    def _on_profile_selected(self, _event: tk.Event | None = None) -> None:
        if self.profile_listbox is None:
            return

        selection = self.profile_listbox.curselection()
        if not selection:
            return

        self.selected_index = int(selection[0])
        self._load_selected_into_form()

    def _selected_profile(self) -> Profile | None:
        if self.selected_index is None or self.selected_index >= len(self.profiles):
            return None
        return self.profiles[self.selected_index]

    def _load_selected_into_form(self) -> None:
        profile = self._selected_profile()
        if profile is None:
            self.name_var.set("")
            return

        self.name_var.set(profile.name)
        self.button_var.set(profile.button.value)
        self.pattern_var.set(profile.pattern.value)
        self.activation_var.set(profile.activation.value)
        self.hotkey_var.set(format_hotkey(profile.hotkey))
        self.cps_var.set(str(profile.cps))
        self.enabled_var.set(profile.active)

    def _write_profiles(self, profiles: list[Profile]) -> bool:
        if not self.store.save(profiles):
            self._set_status(f"Failed saving profiles to {self.store.path}")
            return False

        self.profiles = profiles
        self._refresh_profile_list()
        return True

    def _new_profile(self) -> None:
        profiles = list(self.profiles)
        profiles.append(Profile(name=f"Profile {len(profiles) + 1}"))
        if not self._write_profiles(profiles):
            return

        self.selected_index = len(profiles) - 1
        self._refresh_profile_list()
        self._load_selected_into_form()
        self._set_status(f"Created '{profiles[-1].name}'")

    def _delete_selected_profile(self) -> None:
        profile = self._selected_profile()
        if profile is None:
            self._set_status("Select a profile to delete")
            return

        if self.running_index is not None:
            self.engine.request_deactivate()

        profiles = list(self.profiles)
        del profiles[self.selected_index]
        if not self._write_profiles(profiles):
            return

        self._load_selected_into_form()
        self._set_status(f"Deleted profile '{profile.name}'")

    def _toggle_selected_enabled(self) -> None:
        profile = self._selected_profile()
        if profile is None:
            self._set_status("Select a profile first")
            return

        updated = dataclasses.replace(profile, active=not profile.active)
        if not updated.active and self.running_index == self.selected_index:
            self.engine.request_deactivate()

        profiles = list(self.profiles)
        profiles[self.selected_index] = updated
        if not self._write_profiles(profiles):
            return

        self.enabled_var.set(updated.active)
        state = "enabled" if updated.active else "disabled"
        self._set_status(f"Profile '{updated.name}' {state}")

    def _parse_form(self) -> Profile | None:
        name = self.name_var.get().strip()
        if not name:
            self._set_status("Profile name cannot be empty")
            return None

        try:
            cps = int(self.cps_var.get().strip())
        except ValueError:
            self._set_status(f"Clicks per second must be a whole number ({MIN_CPS}-{MAX_CPS})")
            return None
        if not MIN_CPS <= cps <= MAX_CPS:
            self._set_status(f"Clicks per second must be between {MIN_CPS} and {MAX_CPS}")
            return None

        try:
            hotkey = parse_hotkey(self.hotkey_var.get())
        except UnrecognizedKey as exc:
            self._set_status(f"Invalid hotkey: {exc}")
            return None

        return Profile(
            name=name,
            button=MouseButton(self.button_var.get()),
            pattern=ClickPattern(self.pattern_var.get()),
            activation=ActivationMode(self.activation_var.get()),
            hotkey=hotkey,
            cps=cps,
            active=self.enabled_var.get(),
        )

    def _save_settings(self) -> None:
        if self._selected_profile() is None:
            self._set_status("Select or create a profile first")
            return

        updated = self._parse_form()
        if updated is None:
            return

        profiles = list(self.profiles)
        profiles[self.selected_index] = updated
        if not self._write_profiles(profiles):
            return

        self.hotkey_var.set(format_hotkey(updated.hotkey))
        message = f"Saved profile '{updated.name}'"
        if self.running_index == self.selected_index:
            message += " (applies from the next activation)"
        self._set_status(message)

    def _close_test_window(self) -> None:
        window = self.test_window
        self.test_window = None
        self.test_notebook = None
        self.test_tab_frames = {}
        self.test_pad_canvas = None
        self.test_run_log_tree = None

        if window is None:
            return

        try:
            window.destroy()
        except tk.TclError:
            pass

    def _reset_test_pad(self) -> None:
        self.test_press_counts = {name: 0 for name in TEST_PAD_BUTTONS.values()}
        self.test_press_times = []
        self.test_drag_distance = 0
        self.test_last_motion = None
        self._update_test_pad_labels()

    def _update_test_pad_labels(self) -> None:
        counts = ", ".join(f"{name}: {count}" for name, count in self.test_press_counts.items())
        self.test_counts_var.set(f"Presses - {counts}")

        now = time.monotonic()
        self.test_press_times = [t for t in self.test_press_times if now - t <= TEST_PAD_RATE_WINDOW]
        self.test_rate_var.set(f"Presses in last second: {len(self.test_press_times)}")
        self.test_drag_var.set(f"Drag distance: {self.test_drag_distance}px")

    def _on_test_pad_press(self, event: tk.Event) -> None:
        name = TEST_PAD_BUTTONS.get(event.num)
        if name is None:
            return

        self.test_press_counts[name] = self.test_press_counts.get(name, 0) + 1
        self.test_press_times.append(time.monotonic())
        self.test_last_motion = (event.x, event.y)
        self._update_test_pad_labels()

    def _on_test_pad_release(self, _event: tk.Event) -> None:
        self.test_last_motion = None

    def _on_test_pad_motion(self, event: tk.Event) -> None:
        if self.test_last_motion is None:
            return

        last_x, last_y = self.test_last_motion
        self.test_drag_distance += abs(event.x - last_x) + abs(event.y - last_y)
        self.test_last_motion = (event.x, event.y)
        self._update_test_pad_labels()

    def _refresh_run_log_view(self) -> None:
        tree = self.test_run_log_tree
        if tree is None:
            return

        for item in tree.get_children():
            tree.delete(item)

        if self.run_log is None:
            return

        try:
            entries = self.run_log.read()[-RUN_LOG_VIEW_LIMIT:]
        except OSError as exc:
            self._set_status(f"Failed reading run log: {exc}")
            return

        for entry in reversed(entries):
            tree.insert(
                "",
                tk.END,
                values=(
                    entry.get("started_at", ""),
                    entry.get("profile", ""),
                    entry.get("pattern", ""),
                    entry.get("presses", 0),
                    entry.get("elapsed_seconds", 0),
                    entry.get("stop_reason", ""),
                ),
            )

    def on_close(self) -> None:
        self.hotkey_listener.stop()
        self.engine.stop()
        self._close_test_window()
        self.root.destroy()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Per-profile hotkey autoclicker")
    parser.add_argument("--profiles", default=default_profile_path(), help="profile JSON file")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=default_backend(),
        help="synthetic input backend (default: %(default)s)",
    )
    parser.add_argument("--run-log", default=default_run_log_path(), help="JSONL file for finished runs")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = ProfileStore(args.profiles)
    injector = create_injector(args.backend)
    run_log = RunLog(args.run_log)

    root = tk.Tk()
    app = HyprclickrApp(root, store, injector, run_log)
    logger.info("Profiles: %s (%d loaded)", store.path, len(app.profiles))
    root.mainloop()


if __name__ == "__main__":
    main()
