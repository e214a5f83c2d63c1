"""
Flight Connection Finder - Web Application
Search scheduled direct and connecting flights and check layover risk.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from nicegui import ui, app as nicegui_app

from airports import AirportDB
from composer import ItineraryComposer
from config import load_config
from errors import FlightSearchError
from flight_store import FlightStore
from formatter import format_itinerary
from models import Itinerary, SearchResults, route_text, total_duration
from search_api import (
    airport_detail_response,
    airport_lookup_response,
    connection_stats_response,
    enhanced_search,
    store_stats_response,
)
from timeutils import format_duration

config = load_config()
logging.basicConfig(level=config.log_level_value)
logger = logging.getLogger(__name__)

store = FlightStore(str(config.db_path))
composer = ItineraryComposer.from_config(config, store)

_RISK_CLASSES = {
    'high': 'riskHigh',
    'medium': 'riskMedium',
    'low': 'riskLow',
}


def _static_dir() -> Path:
    return Path(__file__).resolve().parent / 'static'


def _add_theme_assets() -> None:
    """Serve and include the custom theme."""
    static_dir = _static_dir()
    if static_dir.exists():
        nicegui_app.add_static_files('/static', str(static_dir))
        ui.add_head_html('<link rel="stylesheet" href="/static/theme.css">')
    ui.add_head_html('<meta name="viewport" content="width=device-width, initial-scale=1">')


# ============================================================================
# JSON API
# ============================================================================

@nicegui_app.get('/api/flights/search')
def api_flight_search(request: Request):
    status, payload = enhanced_search(
        composer, dict(request.query_params), config.relaxed_min_layover_minutes
    )
    return JSONResponse(payload, status_code=status)


@nicegui_app.get('/api/flights/connections/stats')
def api_connection_stats(request: Request):
    status, payload = connection_stats_response(
        composer, dict(request.query_params), config.relaxed_min_layover_minutes
    )
    return JSONResponse(payload, status_code=status)


@nicegui_app.get('/api/airports')
def api_airports(request: Request):
    status, payload = airport_lookup_response(store, dict(request.query_params))
    return JSONResponse(payload, status_code=status)


@nicegui_app.get('/api/airports/{code}')
def api_airport(code: str):
    status, payload = airport_detail_response(store, code)
    return JSONResponse(payload, status_code=status)


@nicegui_app.get('/api/stats')
def api_stats():
    status, payload = store_stats_response(store)
    return JSONResponse(payload, status_code=status)


# ============================================================================
# UI
# ============================================================================

class FlightSearchApp:
    """Main application controller."""

    def __init__(self, airport_db: AirportDB):
        self.airport_db = airport_db
        self.results: Optional[SearchResults] = None

        # Search defaults
        self.origin_code = 'POM'
        self.destination_code = 'LAX'
        self.max_results = config.max_results

        self.is_searching = False

        # UI refs
        self.search_button = None
        self.loading_label = None
        self.results_container = None

    def create_ui(self):
        """Build the complete UI."""
        _add_theme_assets()

        with ui.column().classes('wrap'):
            self._create_topbar()
            self._create_search_form()
            self._create_results_section()
            self._create_footer()

    def _create_topbar(self):
        with ui.row().classes('topbar'):
            ui.label('Flight Connection Finder').classes('brandTitle')
            ui.label(f'{len(self.airport_db)} airports').classes('muted')

    def _create_search_form(self):
        options = dict((code, label) for label, code in self.airport_db.get_airports_for_dropdown())
        if not options:
            ui.label('No airports loaded. Run flight-seed first.').classes('muted')

        with ui.element('div').classes('panel'):
            with ui.row().style('gap:16px; flex-wrap:wrap; align-items:flex-end'):
                ui.select(
                    label='From',
                    options=options,
                    value=self.origin_code if self.origin_code in options else None,
                    with_input=True,
                    on_change=lambda e: setattr(self, 'origin_code', e.value)
                ).props('dense outlined').style('width: 260px')

                ui.select(
                    label='To',
                    options=options,
                    value=self.destination_code if self.destination_code in options else None,
                    with_input=True,
                    on_change=lambda e: setattr(self, 'destination_code', e.value)
                ).props('dense outlined').style('width: 260px')

                ui.number(
                    label='Max connections',
                    value=self.max_results,
                    min=1,
                    max=50,
                    step=1,
                    on_change=lambda e: setattr(self, 'max_results', int(e.value or config.max_results))
                ).props('dense outlined').style('width: 150px')

                self.search_button = ui.button('Search', icon='search', on_click=self._on_search_click).classes('btn primary')
                self.loading_label = ui.label('').classes('muted').style('display:none')

    async def _on_search_click(self):
        """Handle search button click."""
        if self.is_searching:
            return

        self.is_searching = True
        self.search_button.set_enabled(False)
        self.loading_label.style('display:inline-block')
        self.loading_label.set_text('Searching…')

        try:
            self.results = await asyncio.to_thread(
                composer.search,
                self.origin_code,
                self.destination_code,
                self.max_results,
            )
            self._render_results()

            if self.results.is_empty:
                ui.notify('No connections found for this route.', type='info')
            else:
                ui.notify(f'Found {self.results.total_options} options', type='positive')

        except FlightSearchError as e:
            ui.notify(f'Search failed: {e.message}', type='negative')

        finally:
            self.is_searching = False
            self.search_button.set_enabled(True)
            self.loading_label.style('display:none')

    def _create_results_section(self):
        ui.label('Results').classes('sectionTitle')
        self.results_container = ui.column().classes('dealList')
        self._render_results()

    def _render_results(self):
        if self.results_container is None:
            return

        self.results_container.clear()
        with self.results_container:
            if self.results is None:
                ui.label('No results yet. Run a search above.').classes('muted')
                return
            if self.results.is_empty:
                ui.label(f'No connections found for {self.results.route}.').classes('muted')
                return

            for title, itineraries in (
                ('Direct', self.results.direct),
                ('1 stop', self.results.one_stop),
                ('2 stops', self.results.two_stop),
            ):
                if not itineraries:
                    continue
                ui.label(f'{title} · {len(itineraries)}').classes('muted')
                for itinerary in itineraries:
                    self._render_itinerary_card(itinerary)

    def _render_itinerary_card(self, itinerary: Itinerary):
        data = format_itinerary(itinerary, self.airport_db.get_airport)

        with ui.card().classes('dealCard'):
            with ui.row().style('justify-content:space-between; align-items:center; gap:16px; flex-wrap:wrap'):
                ui.label(route_text(itinerary)).style('font-size:1.125rem; font-weight:800')
                ui.label(format_duration(total_duration(itinerary))).classes('priceTag')

            for leg in itinerary.legs:
                with ui.row().classes('gridMeta'):
                    ui.icon('flight_takeoff', size='18px').classes('muted')
                    ui.label(f'{leg.flight_number} · {leg.airline_name}')
                    ui.label(f'{leg.origin_code} {leg.departure_time} → {leg.destination_code} {leg.arrival_time}')
                    ui.label(leg.aircraft_type or 'N/A').classes('muted')

            for layover in data.get('layovers', []):
                with ui.row().classes(f"metaItem {_RISK_CLASSES[layover['risk']]}"):
                    ui.icon('connecting_airports', size='18px')
                    ui.label(f"{layover['airport']} · {layover['duration']} · {layover['status']}")
                    if layover['isHub']:
                        ui.label('major hub').classes('muted')
                ui.label(layover['recommendation']).classes('muted')

    def _create_footer(self):
        with ui.element('div').style('margin-top:48px'):
            ui.html(
                "<div class='toastHint'>Schedules use local clock times without dates. "
                "Always confirm connections with the airline before booking.</div>",
                sanitize=False
            )


@ui.page('/')
def index():
    """Main page route."""
    app_instance = FlightSearchApp(AirportDB.from_store(store))
    app_instance.create_ui()


if __name__ in {'__main__', '__mp_main__'}:
    stats = store.get_stats()
    if not stats['active_legs']:
        print(f'WARNING: no active flight legs in {config.db_path}')
        print('Run flight-seed (python database_setup.py) to load airports and schedules.')

    ui.run(
        title='Flight Connection Finder',
        favicon='✈️',
        dark=True,
        reload=False,
        port=config.app_port
    )
