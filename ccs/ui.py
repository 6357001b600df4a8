import logging
import sys
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Optional
from urllib.parse import parse_qs, urlparse

import pyperclip
import ttkbootstrap as ttk
from ttkbootstrap.constants import *
from PIL import Image, ImageTk

from .backend import Backend
from .constants import APP_NAME, DEFAULT_VIEWPORT_HEIGHT, DEFAULT_VIEWPORT_WIDTH
from .geometry import SILHOUETTE, VIEWPORT, PlacementState, Point, Rect
from .options import COLORS, FINISHES, MATERIALS, MODELS, CaseOptions, find_option, format_price
from .placement import Handle, PlacementSurface

logger = logging.getLogger(__name__)

HANDLE_RADIUS = 6
# Live previews while dragging a handle are rendered from a bounded copy.
PREVIEW_MAX_SIDE = 1200


class TkLayout:
    """Reads the silhouette and viewport rectangles off a live Tk canvas."""

    def __init__(self, canvas: tk.Canvas) -> None:
        self.canvas = canvas

    def measure(self, name: str) -> Optional[Rect]:
        canvas = self.canvas
        if not canvas.winfo_ismapped():
            return None

        root_x = canvas.winfo_rootx()
        root_y = canvas.winfo_rooty()
        if name == VIEWPORT:
            return Rect(root_x, root_y, canvas.winfo_width(), canvas.winfo_height())
        if name == SILHOUETTE:
            coords = canvas.coords(SILHOUETTE)
            if len(coords) != 4:
                return None
            x0, y0, x1, y1 = coords
            return Rect(root_x + x0, root_y + y0, x1 - x0, y1 - y0)
        return None


class App(ttk.Window):
    """
    Main application window for Custom Case Studio.

    Walks the user through uploading a photo, placing it on the phone
    silhouette with the chosen options, and reviewing the saved design.
    """
    def __init__(self, themename=None):
        """Initialize the application with the configured theme."""
        try:
            backend = Backend()
        except Exception as e:
            messagebox.showerror("Startup Error", f"Failed to initialize application:\n{e}")
            sys.exit(1)

        super().__init__(themename=themename or backend.theme)
        self.backend = backend
        self.lang = self.backend.lang

        if self.backend.initialization_error:
            messagebox.showerror(
                self.lang.get("critical_error_title", "Critical Error"),
                self.backend.initialization_error
            )
            self.destroy()
            sys.exit(1)
        if self.backend.initialization_warning:
            messagebox.showwarning(self.lang.get("warning", "Warning"), self.backend.initialization_warning)

        self.title(self.lang.get("app_title", APP_NAME))

        self.config_id = None
        self.surface: Optional[PlacementSurface] = None
        self.source_image = None
        self.preview_source = None
        self._photo = None
        self._preview_photo = None
        self._pointer_start = None
        self._drag_mode = None
        self._upload_progress = [0]

        self.color_var = tk.StringVar(value=COLORS[0].value)
        self.model_var = tk.StringVar(value=MODELS[0].label)
        self.material_var = tk.StringVar(value=MATERIALS[0].value)
        self.finish_var = tk.StringVar(value=FINISHES[0].value)
        self.price_var = tk.StringVar()
        self.color_label_var = tk.StringVar()

        self._create_main_gui()
        self.protocol("WM_DELETE_WINDOW", self._on_app_close)
        self._refresh_price()
        self.after(100, self._poll_backend_events)

    def _on_app_close(self):
        """Handle application closing: stop workers and destroy."""
        self.backend.shutdown()
        self.destroy()

    # ====================== MAIN GUI STRUCTURE ======================
    def _create_main_gui(self):
        """Create the notebook holding the three steps."""
        self.notebook = ttk.Notebook(self, padding=5)
        self.notebook.pack(fill=BOTH, expand=True)

        self.upload_tab = ttk.Frame(self.notebook, padding=20)
        self.design_tab = ttk.Frame(self.notebook, padding=10)
        self.preview_tab = ttk.Frame(self.notebook, padding=20)

        self.notebook.add(self.upload_tab, text=self.lang.get("step_upload", "1. Add image"))
        self.notebook.add(self.design_tab, text=self.lang.get("step_design", "2. Customize design"), state="disabled")
        self.notebook.add(self.preview_tab, text=self.lang.get("step_preview", "3. Summary"), state="disabled")

        self._create_upload_tab(self.upload_tab)
        self._create_design_tab(self.design_tab)
        self._create_preview_tab(self.preview_tab)

    def _create_upload_tab(self, parent):
        ttk.Label(
            parent,
            text=self.lang.get("upload_heading", "Upload a photo for your case"),
            font=("TkDefaultFont", 16, "bold")
        ).pack(pady=(40, 5))
        ttk.Label(parent, text=self.lang.get("upload_hint", "PNG, JPG, JPEG (max 4 MB)")).pack(pady=(0, 20))

        self.upload_button = ttk.Button(
            parent,
            text=self.lang.get("upload_button", "Choose Image..."),
            bootstyle=PRIMARY,
            command=self.ui_upload_image
        )
        self.upload_button.pack(pady=10)

        self.upload_progress = ttk.Progressbar(parent, orient=HORIZONTAL, length=300, mode="determinate", maximum=100)
        self.upload_progress.pack(pady=10)
        self.upload_status_var = tk.StringVar()
        ttk.Label(parent, textvariable=self.upload_status_var).pack()

    def _create_design_tab(self, parent):
        parent.grid_columnconfigure(0, weight=1)
        parent.grid_rowconfigure(0, weight=1)

        # Viewport the placement coordinates are relative to
        self.canvas = tk.Canvas(
            parent,
            width=DEFAULT_VIEWPORT_WIDTH,
            height=DEFAULT_VIEWPORT_HEIGHT,
            background="#f4f4f5",
            highlightthickness=2,
            highlightbackground="#d4d4d8"
        )
        self.canvas.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        self.canvas.bind("<Configure>", lambda e: self._draw_design())

        # Presses pick the drag mode; motion and release are bound on the widget
        # because a resize redraws (and so deletes) the item under the pointer.
        self.canvas.tag_bind("user_image", "<ButtonPress-1>", lambda e: self._on_pointer_press(e, "move"))
        for handle in Handle:
            self.canvas.tag_bind(f"handle_{handle.value}", "<ButtonPress-1>", lambda e, h=handle: self._on_pointer_press(e, h))
        self.canvas.bind("<B1-Motion>", self._on_pointer_motion)
        self.canvas.bind("<ButtonRelease-1>", self._on_pointer_release)

        self._create_options_panel(parent)

    def _create_options_panel(self, parent):
        panel = ttk.Frame(parent, padding=15)
        panel.grid(row=0, column=1, sticky="ns")

        ttk.Label(
            panel,
            text=self.lang.get("design_heading", "Customize your Case"),
            font=("TkDefaultFont", 16, "bold")
        ).pack(anchor=W, pady=(0, 10))
        ttk.Separator(panel).pack(fill=X, pady=(0, 10))

        # Colors
        ttk.Label(panel, textvariable=self.color_label_var).pack(anchor=W)
        color_row = ttk.Frame(panel)
        color_row.pack(anchor=W, pady=(3, 12))
        for color in COLORS:
            ttk.Radiobutton(
                color_row,
                text=color.label,
                value=color.value,
                variable=self.color_var,
                command=self._on_option_change
            ).pack(side=LEFT, padx=(0, 8))

        # Model
        ttk.Label(panel, text=self.lang.get("label_model", "Model")).pack(anchor=W)
        model_box = ttk.Combobox(
            panel,
            textvariable=self.model_var,
            values=[model.label for model in MODELS],
            state="readonly"
        )
        model_box.pack(fill=X, pady=(3, 12))
        model_box.bind("<<ComboboxSelected>>", lambda e: self._on_option_change())

        for label_key, default_label, options, variable in (
            ("label_material", "Material", MATERIALS, self.material_var),
            ("label_finish", "Finish", FINISHES, self.finish_var),
        ):
            ttk.Label(panel, text=self.lang.get(label_key, default_label)).pack(anchor=W)
            for option in options:
                text = option.label
                if option.description:
                    text += f"  ({option.description})"
                if option.price:
                    text += f"  +{format_price(option.price)}"
                ttk.Radiobutton(
                    panel,
                    text=text,
                    value=option.value,
                    variable=variable,
                    command=self._on_option_change
                ).pack(anchor=W, pady=2)
            ttk.Frame(panel, height=10).pack()

        ttk.Separator(panel).pack(fill=X, pady=10)
        footer = ttk.Frame(panel)
        footer.pack(fill=X)
        ttk.Label(footer, textvariable=self.price_var, font=("TkDefaultFont", 12, "bold")).pack(side=LEFT)
        self.continue_button = ttk.Button(
            footer,
            text=self.lang.get("continue_button", "Continue"),
            bootstyle=SUCCESS,
            command=self.ui_submit_design
        )
        self.continue_button.pack(side=RIGHT)

    def _create_preview_tab(self, parent):
        parent.grid_columnconfigure(1, weight=1)

        self.preview_image_label = ttk.Label(parent)
        self.preview_image_label.grid(row=0, column=0, rowspan=8, sticky="n", padx=(0, 30))

        self.preview_heading_var = tk.StringVar()
        self.preview_lines = [tk.StringVar() for _ in range(3)]
        self.preview_base_var = tk.StringVar()
        self.preview_total_var = tk.StringVar()

        ttk.Label(parent, textvariable=self.preview_heading_var, font=("TkDefaultFont", 16, "bold")).grid(
            row=0, column=1, sticky=W, pady=(0, 10)
        )
        for idx, var in enumerate(self.preview_lines, start=1):
            ttk.Label(parent, textvariable=var).grid(row=idx, column=1, sticky=W)

        ttk.Separator(parent).grid(row=4, column=1, sticky="ew", pady=10)
        ttk.Label(parent, textvariable=self.preview_base_var).grid(row=5, column=1, sticky=W)
        ttk.Label(parent, textvariable=self.preview_total_var, font=("TkDefaultFont", 12, "bold")).grid(
            row=6, column=1, sticky=W, pady=(5, 15)
        )
        ttk.Button(
            parent,
            text=self.lang.get("copy_id_button", "Copy configuration ID"),
            bootstyle=(INFO, OUTLINE),
            command=self.ui_copy_config_id
        ).grid(row=7, column=1, sticky=W)

    # ====================== UPLOAD ======================
    def ui_upload_image(self):
        """Pick an image and upload it in the background."""
        path = filedialog.askopenfilename(
            title=self.lang.get("select_image", "Select Image"),
            filetypes=[
                (self.lang.get("image_files", "Image Files"), "*.png *.jpg *.jpeg"),
                (self.lang.get("all_files", "All Files"), "*.*")
            ],
            parent=self
        )
        if not path:
            return

        self.upload_button.config(state=DISABLED)
        self._upload_progress[0] = 0

        # Called from a worker thread; the value is picked up by check_future.
        def progress_callback(percent):
            self._upload_progress[0] = percent

        future = self.backend.upload_image_async(path, progress_callback)

        def check_future():
            percent = self._upload_progress[0]
            self.upload_progress["value"] = percent
            self.upload_status_var.set(self.lang.get("upload_progress", "Uploading... {percent}%").format(percent=percent))
            if not future.done():
                self.after(100, check_future)
                return

            self.upload_button.config(state=NORMAL)
            try:
                success, value = future.result()
            except Exception as e:
                success, value = False, str(e)
            if not success:
                self.upload_status_var.set("")
                messagebox.showerror(self.lang.get("upload_failed", "Upload failed"), value, parent=self)
                return
            self._open_design(value)

        self.after(100, check_future)

    # ====================== DESIGN ======================
    def _open_design(self, config_id):
        """Load a configuration into the design step."""
        surface = self.backend.open_design(config_id)
        source = self.backend.load_source_image(config_id)
        if surface is None or source is None:
            messagebox.showerror(
                self.lang.get("error_title", "Something Went Wrong"),
                self.lang.get("error_server", "There was a problem at our end, please try again."),
                parent=self
            )
            return

        self.config_id = config_id
        self.surface = surface
        self.source_image = source
        self.preview_source = source.copy()
        self.preview_source.thumbnail((PREVIEW_MAX_SIDE, PREVIEW_MAX_SIDE), Image.Resampling.BILINEAR)

        self.notebook.tab(self.design_tab, state="normal")
        self.notebook.select(self.design_tab)
        self._draw_design()

    def _silhouette_rect(self):
        """Silhouette position in canvas coordinates, centred in the viewport."""
        size = self.backend.silhouette_size
        width = self.canvas.winfo_width() or DEFAULT_VIEWPORT_WIDTH
        height = self.canvas.winfo_height() or DEFAULT_VIEWPORT_HEIGHT
        left = (width - size.width) / 2
        top = (height - size.height) / 2
        return left, top, left + size.width, top + size.height

    def _draw_design(self, state=None):
        """Redraw the case, the user's image, the dimmed surround and the handles."""
        canvas = self.canvas
        canvas.delete("all")
        if self.surface is None:
            canvas.create_text(
                canvas.winfo_width() / 2,
                canvas.winfo_height() / 2,
                text=self.lang.get("no_design", "Upload an image first."),
                fill="#71717a"
            )
            return

        state = state or self.surface.state
        x0, y0, x1, y1 = self._silhouette_rect()
        color = find_option("color", self.color_var.get())
        canvas.create_rectangle(x0, y0, x1, y1, fill=color.swatch, outline="", state=DISABLED)

        # User image
        width = max(1, int(round(state.dimensions.width)))
        height = max(1, int(round(state.dimensions.height)))
        source = self.preview_source if self._drag_mode is not None else self.source_image
        display = source.resize((width, height), Image.Resampling.BILINEAR)
        self._photo = ImageTk.PhotoImage(display)
        canvas.create_image(state.position.x, state.position.y, image=self._photo, anchor=NW, tags=("user_image",))
        canvas.create_rectangle(
            state.position.x, state.position.y,
            state.position.x + width, state.position.y + height,
            outline="#16a34a", width=3, tags=("user_image",)
        )

        # Dim everything outside the case
        cw = canvas.winfo_width() or DEFAULT_VIEWPORT_WIDTH
        ch = canvas.winfo_height() or DEFAULT_VIEWPORT_HEIGHT
        for box in ((0, 0, cw, y0), (0, y1, cw, ch), (0, y0, x0, y1), (x1, y0, cw, y1)):
            canvas.create_rectangle(*box, fill="#e5e7eb", stipple="gray50", outline="", state=DISABLED)
        canvas.create_rectangle(x0, y0, x1, y1, outline="#27272a", width=2, state=DISABLED, tags=(SILHOUETTE,))

        # Corner handles
        corners = {
            Handle.TOP_LEFT: (state.position.x, state.position.y),
            Handle.TOP_RIGHT: (state.position.x + width, state.position.y),
            Handle.BOTTOM_LEFT: (state.position.x, state.position.y + height),
            Handle.BOTTOM_RIGHT: (state.position.x + width, state.position.y + height),
        }
        for handle, (hx, hy) in corners.items():
            canvas.create_oval(
                hx - HANDLE_RADIUS, hy - HANDLE_RADIUS, hx + HANDLE_RADIUS, hy + HANDLE_RADIUS,
                fill="white", outline="#16a34a", width=2, tags=(f"handle_{handle.value}",)
            )

    def _on_pointer_press(self, event, mode):
        """Start moving the image ("move") or resizing it from a corner Handle."""
        if self.surface is None or self.surface.locked:
            return
        self._drag_mode = mode
        self._pointer_start = (event.x, event.y)

    def _on_pointer_motion(self, event):
        if self._drag_mode is None:
            return
        start_x, start_y = self._pointer_start
        dx, dy = event.x - start_x, event.y - start_y
        if self._drag_mode == "move":
            state = self.surface.state
            self._draw_design(PlacementState(Point(state.position.x + dx, state.position.y + dy), state.dimensions))
        else:
            self._draw_design(self.surface.preview_resize(self._drag_mode, dx, dy))

    def _on_pointer_release(self, event):
        if self._drag_mode is None:
            return
        start_x, start_y = self._pointer_start
        dx, dy = event.x - start_x, event.y - start_y
        mode = self._drag_mode
        self._drag_mode = None
        self._pointer_start = None

        if mode == "move":
            position = self.surface.state.position
            self.surface.drag(Point(position.x + dx, position.y + dy))
        else:
            self.surface.resize_from_handle(mode, dx, dy)
        self._draw_design()

    def _current_options(self):
        model = next(m.value for m in MODELS if m.label == self.model_var.get())
        return CaseOptions(
            color=self.color_var.get(),
            model=model,
            material=self.material_var.get(),
            finish=self.finish_var.get(),
        )

    def _on_option_change(self):
        self._refresh_price()
        if self.surface is not None:
            self._draw_design()

    def _refresh_price(self):
        color = find_option("color", self.color_var.get())
        self.color_label_var.set(self.lang.get("label_color", "Color: {label}").format(label=color.label))
        self.price_var.set(format_price(self.backend.quote(self._current_options())))

    def ui_submit_design(self):
        """Export the placed image and save the options, then move to the summary."""
        if self.surface is None or self.backend.submission_pending:
            return

        try:
            future = self.backend.submit_design(
                self.config_id, self.surface, TkLayout(self.canvas), self._current_options()
            )
        except Exception as e:
            logger.exception("Submission could not start")
            messagebox.showerror(self.lang.get("error", "Error"), str(e), parent=self)
            return

        self.continue_button.config(state=DISABLED, text=self.lang.get("saving", "Saving..."))

        def check_future():
            if not future.done():
                self.after(100, check_future)
                return
            self.continue_button.config(state=NORMAL, text=self.lang.get("continue_button", "Continue"))

        self.after(100, check_future)

    # ====================== PREVIEW ======================
    def _poll_backend_events(self):
        """Handle navigation and error events produced on worker threads."""
        for kind, payload in self.backend.drain_events():
            if kind == "navigate":
                self._navigate(payload)
            elif kind == "error":
                title, message = payload
                messagebox.showerror(title, message, parent=self)
        self.after(100, self._poll_backend_events)

    def _navigate(self, path):
        query = parse_qs(urlparse(path).query)
        config_id = query.get("id", [None])[0]
        if config_id:
            self._show_preview(config_id)

    def _show_preview(self, config_id):
        success, summary = self.backend.describe_configuration(config_id)
        if not success:
            messagebox.showerror(self.lang.get("error", "Error"), summary, parent=self)
            return

        labels = summary["labels"]
        self.preview_heading_var.set(
            self.lang.get("preview_heading", "Your {model} Case").format(model=labels["model"])
        )
        self.preview_lines[0].set(self.lang.get("preview_color", "Color: {label}").format(label=labels["color"]))
        self.preview_lines[1].set(
            self.lang.get("preview_material", "Material: {label}").format(label=labels["material"])
        )
        self.preview_lines[2].set(self.lang.get("preview_finish", "Finish: {label}").format(label=labels["finish"]))
        self.preview_base_var.set(
            f"{self.lang.get('preview_base_price', 'Base price')}: {format_price(summary['base_price'])}"
        )
        self.preview_total_var.set(f"{self.lang.get('preview_total', 'Order total')}: {format_price(summary['total'])}")

        if summary["cropped_image_url"]:
            cropped = self.backend.compositor.get_cached_thumbnail(summary["cropped_image_url"], (300, 620))
            backdrop = Image.new("RGBA", cropped.size, find_option("color", summary["options"]["color"]).swatch)
            backdrop.alpha_composite(cropped)
            self._preview_photo = ImageTk.PhotoImage(backdrop)
            self.preview_image_label.config(image=self._preview_photo)

        self.notebook.tab(self.preview_tab, state="normal")
        self.notebook.select(self.preview_tab)

    def ui_copy_config_id(self):
        if not self.config_id:
            return
        pyperclip.copy(self.config_id)
        messagebox.showinfo(APP_NAME, self.lang.get("copied", "Configuration ID copied to clipboard."), parent=self)
