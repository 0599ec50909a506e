import PySimpleGUI as sg
from os_core.config import (ConfigError, DEFAULT_MAX_PROCESS_MB, DEFAULT_MIN_PROCESS_MB,
                            DEFAULT_PAGE_SIZE_KB, DEFAULT_PHYSICAL_MEM_MB, SimulationConfig)
from os_core.scheduler import RealTimeRunner, SimulationScheduler

LOG_COLORS = {'info': 'black', 'success': 'darkgreen', 'warning': 'darkorange', 'error': 'red'}


class PagingSimulatorApp:
    def _show_settings_dialog(self):
        default_settings = {'physical_mem_mb': DEFAULT_PHYSICAL_MEM_MB, 'page_size_kb': DEFAULT_PAGE_SIZE_KB,
                            'min_process_size_mb': DEFAULT_MIN_PROCESS_MB, 'max_process_size_mb': DEFAULT_MAX_PROCESS_MB}
        layout = [
            [sg.Text("Paging Simulation Settings", font=("Helvetica", 14))],
            [sg.Text("Physical Memory (MB, 16-1024):"), sg.Input(default_settings['physical_mem_mb'], size=(10, 1), key='-PHYS_MEM-')],
            [sg.Text("Page Size (KB, 1-64):"), sg.Input(default_settings['page_size_kb'], size=(10, 1), key='-PAGE_SIZE-')],
            [sg.Text("Process Size (MB):"), sg.Input(default_settings['min_process_size_mb'], size=(6, 1), key='-MIN_PROC-'),
             sg.Text("to"), sg.Input(default_settings['max_process_size_mb'], size=(6, 1), key='-MAX_PROC-')],
            [sg.Button("Apply Settings"), sg.Button("Reset Defaults"), sg.Button("Close Settings")]
        ]
        window = sg.Window("Configure Simulation", layout, modal=True, finalize=True)

        config = None
        while True:
            event, values = window.read()
            if event in (sg.WIN_CLOSED, "Close Settings"):
                config = None
                break
            elif event == "Reset Defaults":
                window['-PHYS_MEM-'].update(default_settings['physical_mem_mb'])
                window['-PAGE_SIZE-'].update(default_settings['page_size_kb'])
                window['-MIN_PROC-'].update(default_settings['min_process_size_mb'])
                window['-MAX_PROC-'].update(default_settings['max_process_size_mb'])
            elif event == "Apply Settings":
                try:
                    config = SimulationConfig(physical_mem_mb=int(values['-PHYS_MEM-']),
                                              page_size_kb=int(values['-PAGE_SIZE-']),
                                              min_process_size_mb=float(values['-MIN_PROC-']),
                                              max_process_size_mb=float(values['-MAX_PROC-'])).validate()
                    break
                except ConfigError as e:
                    sg.popup_error(str(e), title="Input Error")
                    config = None
                except ValueError:
                    sg.popup_error("Please enter valid numbers for all settings.", title="Input Error")
                    config = None

        window.close()
        return config

    def __init__(self, refresh_ms=250):
        config = self._show_settings_dialog()
        if config is None:
            print("Paging Simulator setup cancelled by user or failed.")
            self.window = None
            return

        self.refresh_ms = refresh_ms
        self.scheduler = SimulationScheduler(config, logger=lambda line: None)
        self.runner = RealTimeRunner(self.scheduler, interval=1.0)
        self.items_per_row = 16

        status_layout = [
            [sg.Text("Time: 0s", key='-CLOCK-', size=(12, 1)),
             sg.Text("", key='-STATE-', size=(12, 1)),
             sg.Text("", key='-MEM_INFO-', size=(50, 1))],
            [sg.Text("", key='-STATS-', size=(80, 1))],
            [sg.Button("Start", key='-START-'), sg.Button("Pause", key='-PAUSE-', disabled=True),
             sg.Button("Reset", key='-RESET-', disabled=True)],
        ]

        memory_layout = [
            [sg.Text("RAM", key='-RAM_USAGE-', size=(40, 1))],
            [sg.Multiline(size=(100, 10), key='-RAM_DISPLAY-', disabled=True, font=('Courier', 9))],
            [sg.Text("SWAP", key='-SWAP_USAGE-', size=(40, 1))],
            [sg.Multiline(size=(100, 10), key='-SWAP_DISPLAY-', disabled=True, font=('Courier', 9))],
        ]

        process_layout = [
            [sg.Listbox(values=[], size=(40, 8), key='-PROCESS_LIST-', enable_events=True)],
            [sg.Multiline(size=(60, 12), key='-PAGE_TABLE_DISPLAY-', disabled=True, font=('Courier', 9))],
        ]

        logging_layout = [
            [sg.Multiline(size=(100, 20), key='-LOG_OUTPUT-', disabled=True, autoscroll=False)]
        ]

        tab_group_layout = [[sg.TabGroup([
            [sg.Tab('Memory', memory_layout)],
            [sg.Tab('Processes', process_layout)],
            [sg.Tab('Event Log', logging_layout)]
        ])]]

        self.selected_pid = None
        self.window = sg.Window("Memory Paging Simulator", [status_layout, tab_group_layout], finalize=True)
        self._full_refresh()

    def _format_pool(self, frames):
        cells = [f"{'--':>8}" if frame is None else f"{'P%d:%d' % (frame['pid'], frame['vpage']):>8}"
                 for frame in frames]
        rows = []
        for i in range(0, len(cells), self.items_per_row):
            rows.append(f"{i:>6} |" + "".join(cells[i:i + self.items_per_row]))
        return "\n".join(rows)

    def _update_process_list_display(self, snap):
        process_display_list = [f"PID: {p['pid']} - {p['size_kb']}KB ({p['pages']} pages)" for p in snap['processes']]
        self.window['-PROCESS_LIST-'].update(values=process_display_list)

    def _update_selected_process_info(self, snap):
        process = next((p for p in snap['processes'] if p['pid'] == self.selected_pid), None)
        if process is None:
            self.window['-PAGE_TABLE_DISPLAY-'].update("")
            return
        pt_str = f"PID: {process['pid']}  Size: {process['size_kb']}KB  Pages: {process['pages']}\n"
        pt_str += "VP    | Location | Frame\n------------------------\n"
        for entry in process['page_table']:
            pt_str += f"{entry['virtual']:<5} | {entry['location']:<8} | {entry['physical']}\n"
        self.window['-PAGE_TABLE_DISPLAY-'].update(pt_str)

    def _update_log_display(self, snap):
        self.window['-LOG_OUTPUT-'].update("")
        for entry in snap['log']:
            self.window['-LOG_OUTPUT-'].print(f"[{entry['time']}s] {entry['message']}",
                                              text_color=LOG_COLORS.get(entry['type'], 'black'))

    def _full_refresh(self):
        snap = self.runner.snapshot()
        if snap['halted']:
            state = "HALTED"
        elif snap['paused']:
            state = "PAUSED"
        elif snap['running']:
            state = "RUNNING"
        else:
            state = "STOPPED"
        self.window['-CLOCK-'].update(f"Time: {snap['clock']}s")
        self.window['-STATE-'].update(state)
        self.window['-MEM_INFO-'].update(
            f"Virtual: {snap['virtual_mem_mb']}MB  Page: {snap['page_size'] // 1024}KB  "
            f"Frames: {len(snap['ram'])} RAM / {len(snap['swap'])} SWAP")
        stats = snap['stats']
        self.window['-STATS-'].update(
            f"Active: {len(snap['processes'])}  Created: {stats['processes_created']}  "
            f"Finished: {stats['processes_finished']}  Page Faults: {stats['page_faults']}")
        self.window['-RAM_USAGE-'].update(f"RAM usage: {snap['ram_usage']:.1f}%")
        self.window['-SWAP_USAGE-'].update(f"SWAP usage: {snap['swap_usage']:.1f}%")
        self.window['-RAM_DISPLAY-'].update(self._format_pool(snap['ram']))
        self.window['-SWAP_DISPLAY-'].update(self._format_pool(snap['swap']))
        self._update_process_list_display(snap)
        self._update_selected_process_info(snap)
        self._update_log_display(snap)

        self.window['-PAUSE-'].update("Resume" if snap['paused'] else "Pause", disabled=not snap['running'])
        self.window['-RESET-'].update(disabled=not (snap['running'] or snap['halted']))
        self.window['-START-'].update(disabled=snap['running'])

    def handle_event(self, event, values):
        if event in (sg.WIN_CLOSED, 'Close'):
            self.runner.stop(timeout=2)
            return 'close'

        if event == '-START-':
            with self.scheduler.lock:
                self.scheduler.start()
            self.runner.start()
        elif event == '-PAUSE-':
            with self.scheduler.lock:
                self.scheduler.toggle_pause()
        elif event == '-RESET-':
            self.runner.stop(timeout=2)
            with self.scheduler.lock:
                self.scheduler.reset()
            self.selected_pid = None
        elif event == '-PROCESS_LIST-':
            if values['-PROCESS_LIST-']:
                try:
                    self.selected_pid = int(values['-PROCESS_LIST-'][0].split(" ")[1])
                except (IndexError, ValueError):
                    self.selected_pid = None
            else:
                self.selected_pid = None

        self._full_refresh()
        return None

    def run(self):
        if self.window is None:
            return
        while True:
            event, values = self.window.read(timeout=self.refresh_ms)
            if self.handle_event(event, values) == 'close':
                break
        self.window.close()


if __name__ == "__main__":
    PagingSimulatorApp().run()
