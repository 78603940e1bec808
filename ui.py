# ui.py
import os
import tkinter as tk
import ttkbootstrap as ttk
from tkinter import messagebox, filedialog, simpledialog
import datetime
import logging
from database import Database
from models import CashierSystem, POSError
from utils import (money, format_item_count, generate_txt_receipt, generate_pdf_receipt,
                   export_catalog_csv, import_catalog_csv)

logger = logging.getLogger("pos_system.ui")

# Map our theme names to ttkbootstrap theme names
BOOTSTRAP_THEMES = {
    "dark": "darkly",
    "light": "cosmo",
    "default": "cosmo"
}


class CashierUI:
    def __init__(self, db: Database, config=None):
        self.db = db
        self.config = config or {"receipt": {"receipt_dir": "receipts"}, "theme": "default"}
        self.sys = CashierSystem(db)

        theme = self.config.get("theme", "default")
        self.root = ttk.Window(themename=BOOTSTRAP_THEMES.get(theme, "cosmo"))
        self.root.title("Simple POS")
        self.root.geometry("1100x700")
        self.root.minsize(900, 600)

        # Input variables; traces re-render on every keystroke
        self.search_var = tk.StringVar()
        self.discount_var = tk.StringVar(value=str(self.sys.discount_input))
        self.tax_var = tk.StringVar(value=str(self.sys.tax_input))
        self.cash_var = tk.StringVar(value="")
        self.search_var.trace_add("write", lambda *a: self._render_products())
        for var in (self.discount_var, self.tax_var, self.cash_var):
            var.trace_add("write", lambda *a: self._on_totals_input())

        self.last_receipt = ""
        self._build_gui()
        self._render_products()
        self._render_cart()

    def _set_theme(self, theme_name):
        """Set the application theme using ttkbootstrap"""
        bootstrap_theme = BOOTSTRAP_THEMES.get(theme_name, "cosmo")
        ttk.Style().theme_use(bootstrap_theme)
        logger.info(f"Applied theme: {theme_name} (bootstrap: {bootstrap_theme})")

    def _build_gui(self):
        """Build the main GUI interface"""
        self._create_menu_bar()
        self._create_status_bar()

        main_frame = ttk.Frame(self.root)
        main_frame.pack(expand=True, fill='both', padx=10, pady=10)

        left = ttk.Frame(main_frame)
        left.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=5)
        right = ttk.Frame(main_frame)
        right.pack(side=tk.RIGHT, fill=tk.BOTH, expand=True, padx=5)

        # Left section - catalog
        search_frame = ttk.Frame(left)
        search_frame.pack(fill=tk.X, pady=5)
        ttk.Label(search_frame, text="Search:").pack(side=tk.LEFT, padx=5)
        ttk.Entry(search_frame, textvariable=self.search_var, width=30).pack(side=tk.LEFT, padx=5)
        ttk.Button(search_frame, text="Add Product", command=self._show_add_product,
                   bootstyle="info").pack(side=tk.RIGHT, padx=5)

        products_frame = ttk.LabelFrame(left, text="Products", bootstyle="primary")
        products_frame.pack(fill=tk.BOTH, expand=True, pady=5)
        cols = ("Name", "Barcode", "Price")
        self.products_tv = ttk.Treeview(products_frame, columns=cols, show='headings', height=15)
        self.products_tv.column("Name", width=200, anchor=tk.W)
        self.products_tv.column("Barcode", width=100, anchor=tk.CENTER)
        self.products_tv.column("Price", width=80, anchor=tk.E)
        for c in cols:
            self.products_tv.heading(c, text=c)
        self.products_tv.pack(fill=tk.BOTH, expand=True)
        self.products_tv.bind("<Double-1>", lambda e: self._add_selected_product())
        ttk.Button(left, text="Add to Cart", command=self._add_selected_product,
                   bootstyle="success").pack(fill=tk.X, pady=5)

        # Right section - cart and checkout
        cart_frame = ttk.LabelFrame(right, text="Cart", bootstyle="primary")
        cart_frame.pack(fill=tk.BOTH, expand=True, pady=5)
        self.cart_count_var = tk.StringVar(value=format_item_count(0))
        ttk.Label(cart_frame, textvariable=self.cart_count_var).pack(anchor=tk.W, padx=5)
        cols = ("Product", "Qty", "Each", "Line Total")
        self.cart_tv = ttk.Treeview(cart_frame, columns=cols, show='headings', height=8)
        self.cart_tv.column("Product", width=180, anchor=tk.W)
        self.cart_tv.column("Qty", width=50, anchor=tk.CENTER)
        self.cart_tv.column("Each", width=80, anchor=tk.E)
        self.cart_tv.column("Line Total", width=90, anchor=tk.E)
        for c in cols:
            self.cart_tv.heading(c, text=c)
        self.cart_tv.pack(fill=tk.BOTH, expand=True)
        self.cart_hint = ttk.Label(cart_frame, text="Cart is empty. Add products from the left.")

        qty_frame = ttk.Frame(right)
        qty_frame.pack(fill=tk.X)
        ttk.Button(qty_frame, text="−", command=lambda: self._on_cart_action(self.sys.decrement),
                   bootstyle="secondary").pack(side=tk.LEFT, padx=2)
        ttk.Button(qty_frame, text="+", command=lambda: self._on_cart_action(self.sys.add_to_cart),
                   bootstyle="secondary").pack(side=tk.LEFT, padx=2)
        ttk.Button(qty_frame, text="Edit Qty", command=self._edit_cart_quantity,
                   bootstyle="secondary").pack(side=tk.LEFT, padx=2)
        ttk.Button(qty_frame, text="Remove", command=lambda: self._on_cart_action(self.sys.remove_item),
                   bootstyle="danger").pack(side=tk.LEFT, padx=2)

        checkout_frame = ttk.LabelFrame(right, text="Checkout", bootstyle="primary")
        checkout_frame.pack(fill=tk.X, pady=5)
        self.subtotal_var = tk.StringVar(value=money(0))
        self.discount_amt_var = tk.StringVar(value=f"-{money(0)}")
        self.tax_amt_var = tk.StringVar(value=money(0))
        self.total_var = tk.StringVar(value=money(0))
        self.change_var = tk.StringVar(value=money(0))
        rows = [
            ("Subtotal:", None, self.subtotal_var),
            ("Discount (%):", self.discount_var, self.discount_amt_var),
            ("Tax (%):", self.tax_var, self.tax_amt_var),
            ("TOTAL:", None, self.total_var),
            ("Cash:", self.cash_var, None),
            ("Change:", None, self.change_var),
        ]
        for i, (label, entry_var, value_var) in enumerate(rows):
            ttk.Label(checkout_frame, text=label).grid(row=i, column=0, padx=5, pady=3, sticky=tk.W)
            if entry_var is not None:
                ttk.Entry(checkout_frame, textvariable=entry_var, width=10).grid(row=i, column=1, padx=5, pady=3)
            if value_var is not None:
                ttk.Label(checkout_frame, textvariable=value_var).grid(row=i, column=2, padx=5, pady=3, sticky=tk.E)

        btn_frame = ttk.Frame(right)
        btn_frame.pack(fill=tk.X, pady=5)
        ttk.Button(btn_frame, text="New Sale", command=self._new_sale, bootstyle="warning").pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Receipt", command=self._show_receipt, bootstyle="info").pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Complete Sale", command=self._complete_sale,
                   bootstyle="success").pack(side=tk.RIGHT, padx=5)
        self.complete_msg_var = tk.StringVar()
        ttk.Label(right, textvariable=self.complete_msg_var, bootstyle="danger").pack(anchor=tk.W)

    def _create_menu_bar(self):
        menu_bar = tk.Menu(self.root)
        file_menu = tk.Menu(menu_bar, tearoff=0)
        file_menu.add_command(label="Import Catalog CSV...", command=self._import_csv)
        file_menu.add_command(label="Export Catalog CSV...", command=self._export_csv)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.quit)
        menu_bar.add_cascade(label="File", menu=file_menu)

        view_menu = tk.Menu(menu_bar, tearoff=0)
        for name in ("light", "dark"):
            view_menu.add_command(label=f"{name.title()} Theme", command=lambda n=name: self._set_theme(n))
        menu_bar.add_cascade(label="View", menu=view_menu)
        self.root.config(menu=menu_bar)

    def _create_status_bar(self):
        self.status_var = tk.StringVar(value="Ready")
        ttk.Label(self.root, textvariable=self.status_var, relief=tk.SUNKEN,
                  anchor=tk.W).pack(side=tk.BOTTOM, fill=tk.X)

    def _update_status(self, message):
        self.status_var.set(message)
        logger.debug(f"Status: {message}")

    # Rendering
    def _render_products(self):
        self.products_tv.delete(*self.products_tv.get_children())
        for p in self.sys.search(self.search_var.get()):
            self.products_tv.insert("", "end", iid=p.id, values=(p.name, p.barcode or "-", money(p.price)))

    def _render_cart(self):
        self.complete_msg_var.set("")
        self.cart_tv.delete(*self.cart_tv.get_children())
        rows = self.sys.cart_lines()
        if rows:
            self.cart_hint.pack_forget()
        else:
            self.cart_hint.pack(anchor=tk.W, padx=5)
        for prod, qty, line_total in rows:
            self.cart_tv.insert("", "end", iid=prod.id,
                                values=(prod.name, qty, money(prod.price), money(line_total)))
        self.cart_count_var.set(format_item_count(self.sys.cart.line_count()))
        self._render_totals()

    def _render_totals(self):
        totals = self.sys.recalculate()
        self.subtotal_var.set(money(totals.subtotal))
        self.discount_amt_var.set(f"-{money(totals.discount_amt)}")
        self.tax_amt_var.set(money(totals.tax_amt))
        self.total_var.set(money(totals.total))
        self.change_var.set(money(self.sys.change(totals)))

    # Events
    def _on_totals_input(self):
        self.sys.discount_input = self.discount_var.get()
        self.sys.tax_input = self.tax_var.get()
        self.sys.cash_input = self.cash_var.get()
        self._render_totals()

    def _selected(self, tv):
        selected = tv.selection()
        return selected[0] if selected else None

    def _add_selected_product(self):
        product_id = self._selected(self.products_tv)
        if product_id is None:
            messagebox.showinfo("Selection", "Please select a product to add")
            return
        self.sys.add_to_cart(product_id)
        self._render_cart()

    def _on_cart_action(self, action):
        product_id = self._selected(self.cart_tv)
        if product_id is None:
            messagebox.showinfo("Selection", "Please select a cart item")
            return
        action(product_id)
        self._render_cart()
        if self.cart_tv.exists(product_id):
            self.cart_tv.selection_set(product_id)

    def _edit_cart_quantity(self):
        product_id = self._selected(self.cart_tv)
        if product_id is None:
            messagebox.showinfo("Selection", "Please select an item to edit")
            return
        line = self.sys.cart.find(product_id)
        new_qty = simpledialog.askinteger("Edit Quantity", "Enter new quantity:",
                                          initialvalue=line.qty if line else 1, minvalue=1)
        if new_qty is not None:
            self.sys.set_qty(product_id, new_qty)
            self._render_cart()
            self._update_status(f"Updated quantity to {new_qty}")

    def _new_sale(self):
        self.sys.new_sale()
        self.cash_var.set("")
        self._render_cart()
        self._update_status("New sale started")

    def _show_add_product(self):
        """Modal form for a new catalog product"""
        dlg = ttk.Toplevel(self.root)
        dlg.title("Add Product")
        dlg.transient(self.root)
        dlg.grab_set()

        fields = [("Barcode", tk.StringVar()), ("Name", tk.StringVar()), ("Price", tk.StringVar())]
        for i, (label, var) in enumerate(fields):
            ttk.Label(dlg, text=f"{label}:").grid(row=i, column=0, padx=10, pady=5, sticky=tk.W)
            entry = ttk.Entry(dlg, textvariable=var, width=30)
            entry.grid(row=i, column=1, padx=10, pady=5)
            if i == 0:
                entry.focus_set()

        def save():
            barcode, name, price = (v.get() for _, v in fields)
            try:
                prod = self.sys.add_product(barcode, name, price)
            except POSError as e:
                messagebox.showwarning("Input Error", str(e), parent=dlg)
                return
            dlg.destroy()
            self._render_products()
            self._update_status(f"Added product {prod.name}")

        btns = ttk.Frame(dlg)
        btns.grid(row=len(fields), column=0, columnspan=2, pady=10)
        ttk.Button(btns, text="Save", command=save, bootstyle="success").pack(side=tk.LEFT, padx=5)
        ttk.Button(btns, text="Cancel", command=dlg.destroy, bootstyle="secondary").pack(side=tk.LEFT, padx=5)

    def _show_receipt(self, receipt_text=None):
        """Show receipt text with options to save it"""
        self.last_receipt = receipt_text or self.sys.receipt()

        dlg = ttk.Toplevel(self.root)
        dlg.title("Receipt")
        dlg.transient(self.root)
        text = tk.Text(dlg, width=40, height=22, font=("Courier", 11))
        text.insert("1.0", self.last_receipt)
        text.config(state=tk.DISABLED)
        text.pack(padx=10, pady=10, fill=tk.BOTH, expand=True)

        btns = ttk.Frame(dlg)
        btns.pack(pady=5)
        ttk.Button(btns, text="Save TXT", command=lambda: self._save_receipt("txt"),
                   bootstyle="info").pack(side=tk.LEFT, padx=5)
        ttk.Button(btns, text="Save PDF", command=lambda: self._save_receipt("pdf"),
                   bootstyle="info").pack(side=tk.LEFT, padx=5)
        ttk.Button(btns, text="Close", command=dlg.destroy, bootstyle="secondary").pack(side=tk.LEFT, padx=5)

    def _save_receipt(self, kind):
        receipt_dir = self.config.get("receipt", {}).get("receipt_dir", "receipts")
        os.makedirs(receipt_dir, exist_ok=True)
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(receipt_dir, f"receipt_{timestamp}.{kind}")
        try:
            if kind == "pdf":
                generate_pdf_receipt(self.last_receipt, path)
            else:
                generate_txt_receipt(self.last_receipt, path)
        except OSError as e:
            messagebox.showerror("Receipt Error", str(e))
            logger.error(f"Failed to save receipt: {e}")
            return
        self._update_status(f"Receipt saved to {path}")

    def _complete_sale(self):
        try:
            result = self.sys.complete_sale()
        except POSError as e:
            self.complete_msg_var.set(str(e))
            return

        self._show_receipt(result['receipt'])
        self.cash_var.set("")
        self._render_cart()
        self.complete_msg_var.set("Sale completed.")
        self._update_status(f"Sale completed. Change {money(result['change'])}")

    def _export_csv(self):
        export_dir = self.config.get("export", {}).get("default_dir", "exports")
        path = filedialog.asksaveasfilename(initialdir=export_dir, defaultextension=".csv",
                                            filetypes=[("CSV Files", "*.csv")])
        if not path:
            return
        export_catalog_csv(self.sys.catalog, path)
        self._update_status(f"Catalog exported to {path}")

    def _import_csv(self):
        path = filedialog.askopenfilename(filetypes=[("CSV Files", "*.csv")])
        if not path:
            return
        try:
            added, skipped = import_catalog_csv(self.sys, path)
        except (OSError, ValueError) as e:
            messagebox.showerror("Import Error", str(e))
            logger.error(f"Catalog import failed: {e}")
            return
        self._render_products()
        messagebox.showinfo("Import", f"Added {added} products, skipped {skipped} invalid rows")

    def run(self):
        self.root.mainloop()
