"""
DearPyGui UI for the CSV splitter.
Lets the user pick a CSV file, set rows per file and an output folder, then split it.
"""
import dearpygui.dearpygui as dpg

from ui.workflow_backend import run_split_workflow


def append_log(log_window, message):
    dpg.set_value(log_window, dpg.get_value(log_window) + message + "\n")


def run_split(input_file, output_folder, rows_per_file, progress_bar, log_window):
    try:
        dpg.set_value(log_window, "")
        dpg.set_value(progress_bar, 0.0)
        summary = run_split_workflow(
            input_file,
            output_folder,
            rows_per_file,
            on_progress=lambda fraction: dpg.set_value(progress_bar, fraction),
            on_status=lambda message: append_log(log_window, message),
        )
        with dpg.window(label="Summary", modal=True, no_close=False, width=400, height=220):
            dpg.add_text("Processing complete!")
            dpg.add_text(f"Header: {summary.result.header}")
            dpg.add_text(f"Rows: {summary.result.total_rows}")
            dpg.add_text(f"Files generated: {summary.result.total_segments}")
            for record in summary.segments:
                dpg.add_text(f"- {record.path.name} ({record.rows} rows)")
            dpg.add_button(label="Close", callback=lambda: dpg.delete_item(dpg.last_item()))
    except Exception as e:
        append_log(log_window, f"Error: {e}")
        dpg.set_value(progress_bar, 0.0)
        with dpg.window(label="Error", modal=True, no_close=False, width=400, height=120):
            dpg.add_text("Error processing the CSV file. Please try again.")
            dpg.add_text(str(e))
            dpg.add_button(label="Close", callback=lambda: dpg.delete_item(dpg.last_item()))


def main():
    dpg.create_context()
    dpg.create_viewport(title='CSV Splitter', width=600, height=420)

    TEXT = {
        "input_file": "Select CSV file:",
        "output_folder": "Select output folder:",
        "rows_per_file": "Rows per file:",
        "run": "Split file:",
    }

    with dpg.file_dialog(directory_selector=False, show=False, width=500, height=300,
                         callback=lambda s, a: dpg.set_value("input_file", a["file_path_name"]),
                         tag="input_dialog"):
        dpg.add_file_extension(".csv")
        dpg.add_file_extension(".*")

    with dpg.file_dialog(directory_selector=True, show=False, width=500, height=300,
                         callback=lambda s, a: dpg.set_value("output_folder", a["file_path_name"]),
                         tag="output_dialog"):
        pass

    with dpg.window(label="CSV Splitter", width=580, height=400):
        dpg.add_text(TEXT["input_file"])
        dpg.add_input_text(tag="input_file", label="Input File", width=400, hint="CSV file to split.")
        dpg.add_button(label="Select CSV File", callback=lambda: dpg.show_item("input_dialog"))

        dpg.add_text(TEXT["output_folder"])
        dpg.add_input_text(tag="output_folder", label="Output Folder", width=400, default_value="output_data/")
        dpg.add_button(label="Browse Output Folder", callback=lambda: dpg.show_item("output_dialog"))

        dpg.add_text(TEXT["rows_per_file"])
        rows_per_file = dpg.add_input_int(label="Rows", default_value=1000, min_value=1, min_clamped=True, width=200)

        dpg.add_separator()
        dpg.add_text(TEXT["run"])
        progress_bar = dpg.add_progress_bar(label="Progress", default_value=0.0, width=400)
        log_window = dpg.add_input_text(label="Log", multiline=True, readonly=True, width=400, height=100,
                                        default_value="")
        dpg.add_button(label="Continue", callback=lambda: run_split(
            dpg.get_value("input_file"),
            dpg.get_value("output_folder"),
            dpg.get_value(rows_per_file),
            progress_bar,
            log_window,
        ))

    dpg.setup_dearpygui()
    dpg.show_viewport()
    dpg.start_dearpygui()
    dpg.destroy_context()


if __name__ == "__main__":
    main()
